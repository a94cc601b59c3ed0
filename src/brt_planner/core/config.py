"""Planner settings and costing constants."""

import json
import logging
import math
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError
from .models import TransportMode

logger = logging.getLogger(__name__)

DEFAULT_ROAD_FACTORS: dict[TransportMode, float] = {
    TransportMode.WALKING: 1.3,
    TransportMode.CYCLING: 1.2,
    TransportMode.RICKSHAW: 1.4,
    TransportMode.MOTORBIKE_TAXI: 1.4,
    # bus distances are measured along the route already
    TransportMode.BUS: 1.0,
}

DEFAULT_SPEEDS_KMH: dict[TransportMode, float] = {
    TransportMode.WALKING: 5.0,
    TransportMode.CYCLING: 12.5,
    TransportMode.RICKSHAW: 20.0,
    TransportMode.MOTORBIKE_TAXI: 25.0,
    TransportMode.BUS: 25.0,
}


class TrafficWindow(BaseModel):
    """Congestion multiplier applied to departures within an hour range.

    ``end_hour`` is exclusive. A window whose end is not after its start wraps
    past midnight (e.g. 23 -> 5).
    """

    start_hour: int = Field(..., ge=0, le=23, description="First hour covered")
    end_hour: int = Field(..., ge=0, le=24, description="Hour the window ends")
    multiplier: float = Field(..., gt=0, description="Duration multiplier")

    def covers(self, hour: int) -> bool:
        if self.start_hour < self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour


class FareBand(BaseModel):
    """Per-kilometer rate charged up to a distance threshold."""

    up_to_km: float | None = Field(
        None, gt=0, description="Upper bound of the band (None = open ended)"
    )
    rate_per_km: float = Field(..., ge=0, description="Rate per kilometer")


class FareTable(BaseModel):
    """Flag fare plus banded per-km rates, floored at a minimum fare."""

    flag_fare: float = Field(..., ge=0, description="Fixed amount per trip")
    bands: list[FareBand] = Field(..., min_length=1, description="Rate bands")
    minimum_fare: float = Field(0, ge=0, description="Minimum charged fare")

    @model_validator(mode="after")
    def _check_bands(self) -> "FareTable":
        limits = [band.up_to_km for band in self.bands]
        if any(limit is None for limit in limits[:-1]):
            raise ValueError("only the last fare band may be open ended")
        bounded = [limit for limit in limits if limit is not None]
        if bounded != sorted(bounded) or len(set(bounded)) != len(bounded):
            raise ValueError("fare bands must be in ascending order")
        return self

    def fare_for(self, distance_m: float) -> int:
        """Fare for a trip of the given (road) distance."""
        distance_km = max(distance_m, 0.0) / 1000.0
        total = self.flag_fare
        covered = 0.0

        for band in self.bands:
            limit = band.up_to_km if band.up_to_km is not None else math.inf
            portion = min(distance_km, limit) - covered
            if portion <= 0:
                break
            total += portion * band.rate_per_km
            covered = limit

        return round(max(total, self.minimum_fare))


def _default_fare_tables() -> dict[TransportMode, FareTable]:
    return {
        TransportMode.RICKSHAW: FareTable(
            flag_fare=60,
            bands=[
                FareBand(up_to_km=2, rate_per_km=40),
                FareBand(up_to_km=None, rate_per_km=30),
            ],
            minimum_fare=100,
        ),
        TransportMode.MOTORBIKE_TAXI: FareTable(
            flag_fare=30,
            bands=[
                FareBand(up_to_km=3, rate_per_km=25),
                FareBand(up_to_km=None, rate_per_km=18),
            ],
            minimum_fare=70,
        ),
    }


def _default_traffic_windows() -> list[TrafficWindow]:
    return [
        TrafficWindow(start_hour=8, end_hour=10, multiplier=1.4),
        TrafficWindow(start_hour=17, end_hour=20, multiplier=1.5),
        TrafficWindow(start_hour=23, end_hour=5, multiplier=0.85),
    ]


class ModeThresholds(BaseModel):
    """Distance thresholds for suggesting a last-mile mode."""

    walk_max_m: float = Field(500, gt=0, description="Walk below this distance")
    rickshaw_max_m: float = Field(
        2000, gt=0, description="Rickshaw below this distance, motorbike taxi above"
    )

    @model_validator(mode="after")
    def _check_order(self) -> "ModeThresholds":
        if self.rickshaw_max_m < self.walk_max_m:
            raise ValueError("rickshaw_max_m must not be below walk_max_m")
        return self


class CostingConfig(BaseModel):
    """Constants used by the costing model."""

    road_factors: dict[TransportMode, float] = Field(
        default_factory=lambda: dict(DEFAULT_ROAD_FACTORS),
        description="Straight-line to road distance inflation per mode",
    )
    speeds_kmh: dict[TransportMode, float] = Field(
        default_factory=lambda: dict(DEFAULT_SPEEDS_KMH),
        description="Average speed per mode",
    )
    traffic_windows: list[TrafficWindow] = Field(
        default_factory=_default_traffic_windows,
        description="Time-of-day multipliers for motorized modes",
    )
    fare_tables: dict[TransportMode, FareTable] = Field(
        default_factory=_default_fare_tables,
        description="Fare tables for hired modes",
    )
    bus_base_fare: int = Field(50, ge=0, description="Flat bus fare")
    transfer_delay_min: float = Field(
        8.0, ge=0, description="Interchange wait added to a transfer bus leg"
    )
    thresholds: ModeThresholds = Field(default_factory=ModeThresholds)

    @field_validator("road_factors", "speeds_kmh", mode="before")
    @classmethod
    def _fill_missing_modes(cls, value: Any, info: ValidationInfo) -> Any:
        defaults = (
            DEFAULT_ROAD_FACTORS
            if info.field_name == "road_factors"
            else DEFAULT_SPEEDS_KMH
        )
        if isinstance(value, dict):
            merged: dict[Any, Any] = {mode.value: v for mode, v in defaults.items()}
            for key, v in value.items():
                merged[key.value if isinstance(key, TransportMode) else key] = v
            return merged
        return value

    @field_validator("road_factors")
    @classmethod
    def _check_factors(
        cls, value: dict[TransportMode, float]
    ) -> dict[TransportMode, float]:
        for mode, factor in value.items():
            if factor < 1.0:
                raise ValueError(f"road factor for {mode.value} must be >= 1.0")
        return value

    @field_validator("speeds_kmh")
    @classmethod
    def _check_speeds(
        cls, value: dict[TransportMode, float]
    ) -> dict[TransportMode, float]:
        for mode, speed in value.items():
            if speed <= 0:
                raise ValueError(f"speed for {mode.value} must be positive")
        return value


class PlannerSettings(BaseModel):
    """Settings for the journey planner."""

    max_candidates: int = Field(
        5, ge=1, description="Nearest stops considered at each end"
    )
    max_search_radius_m: float = Field(
        3000, gt=0, description="Stops further than this are out of reach"
    )
    boarding_wait_min: float = Field(
        5.0, ge=0, description="Average wait for the first bus"
    )
    costing: CostingConfig = Field(default_factory=CostingConfig)


def load_settings(path: Path) -> PlannerSettings:
    """Load planner settings from a JSON file.

    Missing keys fall back to their defaults.

    Raises:
        ConfigurationError: If the file cannot be read or holds invalid values
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Settings file {path} is not valid JSON: {e}") from e

    try:
        settings = PlannerSettings.model_validate(raw)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid settings in {path}: {e}") from e

    logger.info(f"Loaded planner settings from {path}")
    return settings


def save_settings(settings: PlannerSettings, path: Path) -> None:
    """Write settings as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(settings.model_dump(mode="json"), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    logger.info(f"Saved planner settings to {path}")
