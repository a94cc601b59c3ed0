"""Journey planning entry point."""

import logging
from datetime import datetime

from ..utils.geo import Coordinate, is_valid_coordinate
from .config import PlannerSettings
from .costing import CostingModel
from .exceptions import InvalidCoordinateError
from .models import Journey, PlanResult, PlanStatus
from .path_finder import PathCandidate, PathFinder
from .repository import NetworkRepository, TransitNetwork
from .spatial import NearestStopIndex, StopDistance

logger = logging.getLogger(__name__)


class JourneyPlanner:
    """Plans bus journeys between two coordinates.

    Each call works on the network snapshot installed in the repository at the
    time of the call and keeps all intermediate state local, so one planner can
    serve concurrent requests.
    """

    def __init__(
        self,
        repository: NetworkRepository,
        settings: PlannerSettings | None = None,
    ):
        """Initialize the planner.

        Args:
            repository: Repository holding the loaded network
            settings: Search and costing settings (defaults if omitted)
        """
        self.repository = repository
        self.settings = settings or PlannerSettings()
        self.costing = CostingModel(self.settings.costing)
        self._index: tuple[TransitNetwork, NearestStopIndex] | None = None

    def plan(
        self,
        origin: Coordinate | tuple[float, float],
        destination: Coordinate | tuple[float, float],
        departure_time: datetime | None = None,
    ) -> PlanResult:
        """Plan the best journey from origin to destination.

        Args:
            origin: Rider's position (lat, lon)
            destination: Destination (lat, lon)
            departure_time: Departure used for traffic estimates (default: now)

        Returns:
            PlanResult with the journey, or the reason no journey exists

        Raises:
            InvalidCoordinateError: If either coordinate is out of range
            NetworkNotLoadedError: If the repository has no network
        """
        origin, destination = self._validate(origin, destination)
        departure_time = departure_time or datetime.now()
        network = self.repository.network

        ranked = self._ranked_candidates(network, origin, destination, departure_time)
        if ranked is None:
            logger.info(f"No stop within reach of {origin} or {destination}")
            return PlanResult(
                status=PlanStatus.OUT_OF_SERVICE_AREA,
                origin=origin,
                destination=destination,
            )
        if not ranked:
            logger.info(f"No route found from {origin} to {destination}")
            return PlanResult(
                status=PlanStatus.NO_ROUTE_FOUND,
                origin=origin,
                destination=destination,
            )

        journey = self._assemble(ranked[0], departure_time)
        logger.info(f"Planned journey {journey}")
        return PlanResult(
            status=PlanStatus.FOUND,
            origin=origin,
            destination=destination,
            journey=journey,
        )

    def plan_journey(
        self,
        origin: Coordinate | tuple[float, float],
        destination: Coordinate | tuple[float, float],
        departure_time: datetime | None = None,
    ) -> Journey | None:
        """Like :meth:`plan` but returns only the journey (None if none)."""
        return self.plan(origin, destination, departure_time).journey

    def plan_alternatives(
        self,
        origin: Coordinate | tuple[float, float],
        destination: Coordinate | tuple[float, float],
        departure_time: datetime | None = None,
        max_journeys: int = 3,
    ) -> list[Journey]:
        """Up to ``max_journeys`` journeys, best first."""
        origin, destination = self._validate(origin, destination)
        departure_time = departure_time or datetime.now()
        network = self.repository.network

        ranked = self._ranked_candidates(network, origin, destination, departure_time)
        if not ranked:
            return []
        return [
            self._assemble(candidate, departure_time)
            for candidate in ranked[:max_journeys]
        ]

    def nearest_stops(
        self,
        point: Coordinate | tuple[float, float],
        k: int | None = None,
        max_radius_m: float | None = None,
    ) -> list[StopDistance]:
        """Nearest stops to a point using the planner's search settings."""
        point = Coordinate(*point)
        if not is_valid_coordinate(point.lat, point.lon):
            raise InvalidCoordinateError(f"Invalid coordinate: {point}")
        return self._index_for(self.repository.network).nearest(
            point,
            k if k is not None else self.settings.max_candidates,
            max_radius_m
            if max_radius_m is not None
            else self.settings.max_search_radius_m,
        )

    def _validate(
        self,
        origin: Coordinate | tuple[float, float],
        destination: Coordinate | tuple[float, float],
    ) -> tuple[Coordinate, Coordinate]:
        origin = Coordinate(*origin)
        destination = Coordinate(*destination)
        if not is_valid_coordinate(origin.lat, origin.lon):
            raise InvalidCoordinateError(f"Invalid origin coordinate: {origin}")
        if not is_valid_coordinate(destination.lat, destination.lon):
            raise InvalidCoordinateError(
                f"Invalid destination coordinate: {destination}"
            )
        return origin, destination

    def _ranked_candidates(
        self,
        network: TransitNetwork,
        origin: Coordinate,
        destination: Coordinate,
        departure_time: datetime,
    ) -> list[PathCandidate] | None:
        """Ranked path candidates, or None when either end is out of reach."""
        index = self._index_for(network)
        k = self.settings.max_candidates
        radius = self.settings.max_search_radius_m

        boarding = index.nearest(origin, k, radius)
        alighting = index.nearest(destination, k, radius)
        if not boarding or not alighting:
            return None

        finder = PathFinder(network, self.costing)
        return finder.rank(boarding, alighting, departure_time)

    def _index_for(self, network: TransitNetwork) -> NearestStopIndex:
        cached = self._index
        if cached is not None and cached[0] is network:
            return cached[1]

        index = NearestStopIndex(network.stops.values())
        self._index = (network, index)
        return index

    def _assemble(self, candidate: PathCandidate, departure_time: datetime) -> Journey:
        walk_to_board = candidate.boarding.distance_m
        walk_from_alight = candidate.alighting.distance_m

        first_mile = self.costing.estimate_last_mile(walk_to_board, departure_time)
        bus_leg = self.costing.estimate_bus_leg(
            candidate.bus_distance_m, departure_time, candidate.requires_transfer
        )
        last_mile = self.costing.estimate_last_mile(walk_from_alight, departure_time)

        total_duration = (
            first_mile.duration_min
            + bus_leg.duration_min
            + last_mile.duration_min
            + self.settings.boarding_wait_min
        )

        return Journey(
            boarding_stop=candidate.boarding.stop,
            alighting_stop=candidate.alighting.stop,
            transfer_stop=candidate.transfer_stop,
            routes=candidate.routes,
            walk_to_board_m=walk_to_board,
            walk_from_alight_m=walk_from_alight,
            bus_distance_m=candidate.bus_distance_m,
            bus_duration_min=bus_leg.duration_min,
            total_distance_m=walk_to_board + candidate.bus_distance_m + walk_from_alight,
            total_duration_min=total_duration,
            requires_transfer=candidate.requires_transfer,
            first_mile=first_mile,
            bus_leg=bus_leg,
            last_mile=last_mile,
            departure_time=departure_time,
        )
