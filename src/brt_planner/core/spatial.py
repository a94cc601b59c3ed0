"""Nearest-stop lookup by great-circle distance."""

from collections.abc import Iterable
from typing import NamedTuple

from ..utils.geo import Coordinate, haversine_distance
from .exceptions import ValidationError
from .models import Stop


class StopDistance(NamedTuple):
    """A stop paired with its distance from a query point."""

    stop: Stop
    distance_m: float


class NearestStopIndex:
    """Answers "which stops are closest to this point".

    City bus networks have hundreds of stops, so a linear Haversine scan is
    fast enough. A grid or k-d tree could replace it as long as ordering,
    metric and radius semantics stay the same.
    """

    def __init__(self, stops: Iterable[Stop]):
        self.stops = list(stops)

    def nearest(
        self, point: Coordinate, k: int, max_radius_m: float
    ) -> list[StopDistance]:
        """Find up to ``k`` stops within ``max_radius_m`` of ``point``.

        Args:
            point: Query coordinate
            k: Maximum number of stops to return
            max_radius_m: Search radius in meters (inclusive)

        Returns:
            Stops ordered by ascending distance, ties broken by stop id. Empty
            when no stop lies within the radius.

        Raises:
            ValidationError: If ``k`` is below 1 or the radius is negative
        """
        if k < 1:
            raise ValidationError(f"k must be at least 1, got {k}")
        if max_radius_m < 0:
            raise ValidationError(f"Search radius cannot be negative: {max_radius_m}")

        in_range = []
        for stop in self.stops:
            distance = haversine_distance(point.lat, point.lon, stop.lat, stop.lon)
            if distance <= max_radius_m:
                in_range.append(StopDistance(stop, distance))

        in_range.sort(key=lambda item: (item.distance_m, item.stop.id))
        return in_range[:k]
