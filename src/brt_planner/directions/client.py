"""Mapbox Directions API client for road distances."""

import logging
from dataclasses import dataclass
from typing import Any

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..core.exceptions import DirectionsError, NetworkError, ValidationError
from ..core.models import TransportMode
from ..utils.geo import Coordinate, is_valid_coordinate

logger = logging.getLogger(__name__)

MAPBOX_BASE_URL = "https://api.mapbox.com/directions/v5/mapbox"

PROFILES = {
    TransportMode.WALKING: "walking",
    TransportMode.CYCLING: "cycling",
    TransportMode.RICKSHAW: "driving-traffic",
    TransportMode.MOTORBIKE_TAXI: "driving-traffic",
    TransportMode.BUS: "driving-traffic",
}


@dataclass(frozen=True)
class RoadRoute:
    """Distance and duration of a road route."""

    distance_m: float
    duration_s: float
    profile: str

    @property
    def duration_min(self) -> float:
        return self.duration_s / 60.0


class MapboxDirectionsClient:
    """Client for the Mapbox Directions API."""

    def __init__(
        self, access_token: str, timeout: int = 30, base_url: str = MAPBOX_BASE_URL
    ):
        """Initialize the client.

        Args:
            access_token: Mapbox access token
            timeout: Request timeout in seconds
            base_url: Directions endpoint root
        """
        if not access_token or not access_token.strip():
            raise ValidationError("Mapbox access token cannot be empty")

        self.access_token = access_token
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def route(
        self, start: Coordinate, end: Coordinate, mode: TransportMode
    ) -> RoadRoute:
        """Get the road route between two points for a transport mode.

        Args:
            start: Start coordinate
            end: End coordinate
            mode: Transport mode, mapped to a Mapbox profile

        Returns:
            RoadRoute for the first route returned

        Raises:
            ValidationError: If a coordinate is out of range
            DirectionsError: If the service rejects the request or answers
                with an unusable payload
            NetworkError: If the service cannot be reached
        """
        for point in (start, end):
            if not is_valid_coordinate(point.lat, point.lon):
                raise ValidationError(f"Invalid coordinate: {point}")

        profile = PROFILES[mode]
        data = self._request(profile, start, end)
        return self._parse_route(data, profile)

    @retry(
        retry=retry_if_exception_type(NetworkError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    def _request(
        self, profile: str, start: Coordinate, end: Coordinate
    ) -> dict[str, Any]:
        """Fetch a directions payload.

        Server errors and transport failures raise NetworkError and are
        retried; client errors raise DirectionsError immediately.
        """
        url = (
            f"{self.base_url}/{profile}/"
            f"{start.lon},{start.lat};{end.lon},{end.lat}"
        )
        params = {
            "access_token": self.access_token,
            "overview": "false",
            "alternatives": "false",
            "steps": "false",
        }

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Failed to fetch directions: {str(e)}") from e

        if response.status_code >= 500:
            logger.warning(f"Directions service error {response.status_code}")
            raise NetworkError(
                f"Directions service returned HTTP {response.status_code}"
            )
        if response.status_code != 200:
            raise DirectionsError(
                f"Directions request rejected with HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DirectionsError("Directions response is not valid JSON") from e

        if not isinstance(data, dict):
            raise DirectionsError("Directions response must be a JSON object")
        return data

    def _parse_route(self, data: dict[str, Any], profile: str) -> RoadRoute:
        if data.get("code") != "Ok":
            raise DirectionsError(
                f"Directions service answered {data.get('code')}: {data.get('message', '')}"
            )

        routes = data.get("routes")
        if not isinstance(routes, list) or not routes:
            raise DirectionsError("Directions response contains no routes")

        first = routes[0]
        distance = first.get("distance") if isinstance(first, dict) else None
        duration = first.get("duration") if isinstance(first, dict) else None
        if not isinstance(distance, (int, float)) or not isinstance(
            duration, (int, float)
        ):
            raise DirectionsError("Directions route lacks distance or duration")
        if distance < 0 or duration < 0:
            raise DirectionsError("Directions route has negative distance or duration")

        logger.debug(f"Road route ({profile}): {distance}m, {duration}s")
        return RoadRoute(
            distance_m=float(distance), duration_s=float(duration), profile=profile
        )
