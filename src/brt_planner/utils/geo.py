"""Great-circle distance and coordinate helpers."""

import math
from typing import NamedTuple

EARTH_RADIUS_M = 6_371_000.0


class Coordinate(NamedTuple):
    """A WGS84 point in decimal degrees."""

    lat: float
    lon: float

    def __str__(self) -> str:
        return f"{self.lat:.6f},{self.lon:.6f}"


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points.

    Args:
        lat1: Latitude of the first point in degrees
        lon1: Longitude of the first point in degrees
        lat2: Latitude of the second point in degrees
        lon2: Longitude of the second point in degrees

    Returns:
        Distance in meters
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def distance_between(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in meters between two coordinates."""
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def is_valid_coordinate(lat: float, lon: float) -> bool:
    """Check that latitude/longitude are finite and within WGS84 bounds."""
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def parse_coordinate(text: str) -> Coordinate:
    """Parse a "lat,lon" string.

    Raises:
        ValueError: If the text is not two comma separated numbers
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        raise ValueError(f"Expected 'lat,lon', got '{text}'")
    return Coordinate(float(parts[0]), float(parts[1]))


def format_distance(distance_m: float) -> str:
    """Format a distance for display (e.g. '350m', '2.4km')."""
    if distance_m < 1000:
        return f"{round(distance_m)}m"
    return f"{distance_m / 1000:.1f}km"


def format_duration(minutes: float) -> str:
    """Format a duration in minutes for display (e.g. '12min', '1h 5min')."""
    total = round(minutes)
    if total < 60:
        return f"{total}min"

    hours, remaining = divmod(total, 60)
    if remaining == 0:
        return f"{hours}h"
    return f"{hours}h {remaining}min"
