"""Unit tests for geographic helpers."""

import math

import pytest

from brt_planner.utils.geo import (
    Coordinate,
    distance_between,
    format_distance,
    format_duration,
    haversine_distance,
    is_valid_coordinate,
    parse_coordinate,
)


class TestHaversine:
    """Test great-circle distances."""

    def test_zero_distance(self):
        """Test distance from a point to itself."""
        assert haversine_distance(24.86, 67.0, 24.86, 67.0) == 0.0

    def test_one_hundredth_degree_on_equator(self):
        """Test 0.01 degrees of longitude on the equator is about 1112 m."""
        distance = haversine_distance(0.0, 0.0, 0.0, 0.01)
        assert distance == pytest.approx(1111.95, abs=0.1)

    def test_symmetric(self):
        """Test distance does not depend on argument order."""
        a = haversine_distance(24.8885, 67.1905, 24.8470, 67.0300)
        b = haversine_distance(24.8470, 67.0300, 24.8885, 67.1905)
        assert a == pytest.approx(b)

    def test_distance_between_coordinates(self):
        """Test the Coordinate wrapper matches the raw function."""
        a = Coordinate(24.9180, 67.0970)
        b = Coordinate(24.8750, 67.0360)
        assert distance_between(a, b) == haversine_distance(
            a.lat, a.lon, b.lat, b.lon
        )


class TestCoordinates:
    """Test coordinate parsing and validation."""

    def test_parse_coordinate(self):
        """Test parsing a lat,lon string."""
        assert parse_coordinate("24.8607, 67.0011") == Coordinate(24.8607, 67.0011)

    @pytest.mark.parametrize("text", ["24.86", "a,b", "1,2,3", ""])
    def test_parse_coordinate_invalid(self, text):
        """Test malformed coordinate strings."""
        with pytest.raises(ValueError):
            parse_coordinate(text)

    def test_coordinate_str(self):
        """Test coordinate display format."""
        assert str(Coordinate(24.86, 67.0)) == "24.860000,67.000000"

    @pytest.mark.parametrize(
        "lat,lon,valid",
        [
            (0.0, 0.0, True),
            (90.0, 180.0, True),
            (-90.0, -180.0, True),
            (90.1, 0.0, False),
            (0.0, -180.5, False),
            (math.nan, 0.0, False),
            (0.0, math.inf, False),
        ],
    )
    def test_is_valid_coordinate(self, lat, lon, valid):
        """Test latitude/longitude bounds."""
        assert is_valid_coordinate(lat, lon) is valid


class TestFormatting:
    """Test display helpers."""

    def test_format_distance(self):
        """Test meters and kilometers."""
        assert format_distance(350.4) == "350m"
        assert format_distance(2400) == "2.4km"

    def test_format_duration(self):
        """Test minutes and hours."""
        assert format_duration(12.4) == "12min"
        assert format_duration(60) == "1h"
        assert format_duration(65) == "1h 5min"
