"""Utility modules for brt-planner."""

from .geo import (
    EARTH_RADIUS_M,
    Coordinate,
    distance_between,
    format_distance,
    format_duration,
    haversine_distance,
    is_valid_coordinate,
    parse_coordinate,
)

__all__ = [
    "EARTH_RADIUS_M",
    "Coordinate",
    "distance_between",
    "format_distance",
    "format_duration",
    "haversine_distance",
    "is_valid_coordinate",
    "parse_coordinate",
]
