"""Unit tests for planner settings."""

import json

import pytest
from pydantic import ValidationError

from brt_planner.core.config import (
    CostingConfig,
    FareBand,
    FareTable,
    PlannerSettings,
    TrafficWindow,
    load_settings,
    save_settings,
)
from brt_planner.core.exceptions import ConfigurationError
from brt_planner.core.models import TransportMode


class TestTrafficWindow:
    """Test hour ranges."""

    def test_daytime_window(self):
        """Test a window that does not wrap."""
        window = TrafficWindow(start_hour=8, end_hour=10, multiplier=1.4)
        assert window.covers(8)
        assert window.covers(9)
        assert not window.covers(10)
        assert not window.covers(7)

    def test_overnight_window_wraps(self):
        """Test a window that runs past midnight."""
        window = TrafficWindow(start_hour=23, end_hour=5, multiplier=0.85)
        assert window.covers(23)
        assert window.covers(0)
        assert window.covers(4)
        assert not window.covers(5)
        assert not window.covers(12)


class TestFareTable:
    """Test banded fares."""

    def test_rickshaw_default_fare(self):
        """Test flag fare plus two bands."""
        table = CostingConfig().fare_tables[TransportMode.RICKSHAW]
        # 60 + 2 * 40 + 1.5 * 30
        assert table.fare_for(3500) == 185

    def test_minimum_fare_applies(self):
        """Test short trips pay the minimum."""
        table = CostingConfig().fare_tables[TransportMode.RICKSHAW]
        assert table.fare_for(200) == 100

    def test_open_band_must_be_last(self):
        """Test band ordering is validated."""
        with pytest.raises(ValidationError, match="last fare band"):
            FareTable(
                flag_fare=10,
                bands=[
                    FareBand(up_to_km=None, rate_per_km=10),
                    FareBand(up_to_km=5, rate_per_km=5),
                ],
            )

    def test_bands_must_ascend(self):
        """Test descending band limits are rejected."""
        with pytest.raises(ValidationError, match="ascending"):
            FareTable(
                flag_fare=10,
                bands=[
                    FareBand(up_to_km=5, rate_per_km=10),
                    FareBand(up_to_km=2, rate_per_km=5),
                ],
            )


class TestCostingConfig:
    """Test costing defaults and overrides."""

    def test_defaults(self):
        """Test default constants."""
        config = CostingConfig()
        assert config.road_factors[TransportMode.WALKING] == 1.3
        assert config.road_factors[TransportMode.BUS] == 1.0
        assert config.speeds_kmh[TransportMode.CYCLING] == 12.5
        assert config.bus_base_fare == 50
        assert config.transfer_delay_min == 8.0
        assert config.thresholds.walk_max_m == 500

    def test_partial_override_keeps_other_modes(self):
        """Test overriding one speed keeps the defaults for the rest."""
        config = CostingConfig.model_validate({"speeds_kmh": {"walking": 4.0}})
        assert config.speeds_kmh[TransportMode.WALKING] == 4.0
        assert config.speeds_kmh[TransportMode.BUS] == 25.0

    def test_road_factor_below_one_rejected(self):
        """Test road factors cannot shrink distances."""
        with pytest.raises(ValidationError, match="road factor"):
            CostingConfig.model_validate({"road_factors": {"walking": 0.9}})

    def test_threshold_order(self):
        """Test rickshaw threshold cannot be below walking threshold."""
        with pytest.raises(ValidationError):
            CostingConfig.model_validate(
                {"thresholds": {"walk_max_m": 800, "rickshaw_max_m": 600}}
            )


class TestSettingsFile:
    """Test loading and saving settings."""

    def test_round_trip(self, tmp_path):
        """Test saved settings load back unchanged."""
        path = tmp_path / "config" / "planner.json"
        settings = PlannerSettings(max_candidates=3, boarding_wait_min=4.0)

        save_settings(settings, path)
        loaded = load_settings(path)

        assert loaded == settings

    def test_missing_keys_use_defaults(self, tmp_path):
        """Test a partial file."""
        path = tmp_path / "planner.json"
        path.write_text(json.dumps({"max_search_radius_m": 1500}))

        settings = load_settings(path)
        assert settings.max_search_radius_m == 1500
        assert settings.max_candidates == 5

    def test_missing_file(self, tmp_path):
        """Test unreadable file."""
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_settings(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON."""
        path = tmp_path / "planner.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            load_settings(path)

    def test_invalid_values(self, tmp_path):
        """Test values outside their allowed range."""
        path = tmp_path / "planner.json"
        path.write_text(json.dumps({"max_candidates": 0}))
        with pytest.raises(ConfigurationError, match="Invalid settings"):
            load_settings(path)
