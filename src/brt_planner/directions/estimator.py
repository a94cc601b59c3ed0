"""Leg estimates that prefer a road-routing service when one is available."""

import logging
from datetime import datetime
from typing import Protocol

from ..core.costing import FREE_MODES, CostingModel
from ..core.exceptions import DirectionsError, InvalidCoordinateError, NetworkError
from ..core.models import CostEstimate, EstimateSource, TransportMode
from ..utils.geo import Coordinate, distance_between, is_valid_coordinate
from .client import RoadRoute

logger = logging.getLogger(__name__)

# Road distance / straight-line distance outside this range is not trusted
MIN_ROAD_RATIO = 0.5
MAX_ROAD_RATIO = 3.0
# Straight-line distances below this skip the road lookup
MIN_LOOKUP_DISTANCE_M = 1.0


class RoadRoutingProvider(Protocol):
    """Source of authoritative road distances."""

    def route(
        self, start: Coordinate, end: Coordinate, mode: TransportMode
    ) -> RoadRoute: ...


class LegEstimator:
    """Estimates a single leg between two points.

    With a provider configured, its road distance and duration are used when
    they look plausible. Otherwise, or when the provider fails, the costing
    model's corrected great-circle estimate is returned. The result records
    which of the two was used.
    """

    def __init__(
        self, costing: CostingModel, provider: RoadRoutingProvider | None = None
    ):
        self.costing = costing
        self.provider = provider

    def estimate(
        self,
        start: Coordinate,
        end: Coordinate,
        mode: TransportMode,
        departure_time: datetime,
    ) -> CostEstimate:
        for point in (start, end):
            if not is_valid_coordinate(point.lat, point.lon):
                raise InvalidCoordinateError(f"Invalid coordinate: {point}")

        straight = distance_between(start, end)

        road = self._road_route(start, end, mode, straight)
        if road is not None:
            return CostEstimate(
                distance_m=road.distance_m,
                duration_min=road.duration_min,
                fare=None
                if mode in FREE_MODES
                else self.costing.fare_for_road_distance(road.distance_m, mode),
                mode=mode,
                source=EstimateSource.ROAD_ROUTING,
            )

        return self.costing.estimate_leg(straight, mode, departure_time)

    def _road_route(
        self,
        start: Coordinate,
        end: Coordinate,
        mode: TransportMode,
        straight_m: float,
    ) -> RoadRoute | None:
        if self.provider is None or straight_m < MIN_LOOKUP_DISTANCE_M:
            return None

        try:
            road = self.provider.route(start, end, mode)
        except (DirectionsError, NetworkError) as e:
            logger.warning(f"Road routing unavailable, using local estimate: {e}")
            return None

        ratio = road.distance_m / straight_m
        if not MIN_ROAD_RATIO <= ratio <= MAX_ROAD_RATIO:
            logger.warning(
                f"Road distance {road.distance_m:.0f}m is implausible for "
                f"{straight_m:.0f}m straight line (ratio {ratio:.2f}), using local estimate"
            )
            return None
        return road
