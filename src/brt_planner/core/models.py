"""Data models for BRT journey planning."""

from datetime import datetime
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from ..utils.geo import Coordinate, format_distance, format_duration


class TransportMode(str, Enum):
    """Ways of covering a leg of the trip."""

    WALKING = "walking"
    CYCLING = "cycling"
    RICKSHAW = "rickshaw"
    MOTORBIKE_TAXI = "motorbike-taxi"
    BUS = "bus"

    @property
    def label(self) -> str:
        return {
            TransportMode.WALKING: "Walk",
            TransportMode.CYCLING: "Cycle",
            TransportMode.RICKSHAW: "Rickshaw",
            TransportMode.MOTORBIKE_TAXI: "Motorbike taxi",
            TransportMode.BUS: "Bus",
        }[self]


class EstimateSource(str, Enum):
    """Where a distance/duration estimate came from."""

    ROAD_ROUTING = "road_routing"
    LOCAL_CORRECTED = "local_corrected"


class Stop(BaseModel):
    """Represents a bus stop."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique stop identifier")
    name: str = Field(..., description="Display name")
    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")
    routes: tuple[str, ...] = Field(
        default_factory=tuple, description="Names of routes serving this stop"
    )

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    def __str__(self) -> str:
        return self.name


class Route(BaseModel):
    """Represents a bus route as an ordered sequence of stop ids."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique route name")
    stop_ids: tuple[str, ...] = Field(
        ..., description="Stop ids in direction of travel"
    )
    color: str | None = Field(None, description="Display colour (hex)")

    @field_validator("stop_ids")
    @classmethod
    def _check_stop_ids(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(value) < 2:
            raise ValueError("a route needs at least 2 stops")
        if len(set(value)) != len(value):
            raise ValueError("a route cannot visit the same stop twice")
        return value

    def index_of(self, stop_id: str) -> int | None:
        """Position of a stop on this route, or None if not served."""
        try:
            return self.stop_ids.index(stop_id)
        except ValueError:
            return None

    def __contains__(self, stop_id: object) -> bool:
        return stop_id in self.stop_ids

    def __str__(self) -> str:
        return f"{self.name} ({len(self.stop_ids)} stops)"


class CostEstimate(BaseModel):
    """Distance, duration and fare for one leg of a trip."""

    model_config = ConfigDict(frozen=True)

    distance_m: float = Field(..., ge=0, description="Distance in meters")
    duration_min: float = Field(..., ge=0, description="Duration in minutes")
    fare: int | None = Field(None, description="Fare in currency units")
    mode: TransportMode = Field(..., description="Transport mode")
    source: EstimateSource = Field(
        EstimateSource.LOCAL_CORRECTED, description="Provenance of the estimate"
    )

    def __str__(self) -> str:
        text = f"{self.mode.label} {format_distance(self.distance_m)}, {format_duration(self.duration_min)}"
        if self.fare:
            text += f", Rs. {self.fare}"
        return text


class Journey(BaseModel):
    """A planned trip from origin to destination over the bus network."""

    model_config = ConfigDict(frozen=True)

    boarding_stop: Stop = Field(..., description="Stop where the rider boards")
    alighting_stop: Stop = Field(..., description="Stop where the rider gets off")
    transfer_stop: Stop | None = Field(
        None, description="Interchange stop when switching routes"
    )
    routes: tuple[Route, ...] = Field(..., description="Routes used, in order")
    walk_to_board_m: float = Field(..., ge=0, description="Origin to boarding stop")
    walk_from_alight_m: float = Field(
        ..., ge=0, description="Alighting stop to destination"
    )
    bus_distance_m: float = Field(..., ge=0, description="Along-route bus distance")
    bus_duration_min: float = Field(..., ge=0, description="Bus leg duration")
    total_distance_m: float = Field(..., ge=0, description="Total distance")
    total_duration_min: float = Field(..., ge=0, description="Total duration")
    requires_transfer: bool = Field(..., description="Whether routes are switched")
    first_mile: CostEstimate = Field(..., description="Leg to the boarding stop")
    bus_leg: CostEstimate = Field(..., description="Bus leg")
    last_mile: CostEstimate = Field(..., description="Leg to the destination")
    departure_time: datetime = Field(..., description="Requested departure time")

    @model_validator(mode="after")
    def _check_invariants(self) -> "Journey":
        if self.boarding_stop.id == self.alighting_stop.id:
            raise ValueError("boarding and alighting stop must differ")
        if len(self.routes) not in (1, 2):
            raise ValueError("a journey uses one or two routes")

        has_transfer_stop = self.transfer_stop is not None
        if not (self.requires_transfer == has_transfer_stop == (len(self.routes) == 2)):
            raise ValueError(
                "requires_transfer, transfer_stop and the route count disagree"
            )

        if self.transfer_stop is not None:
            first, second = self.routes
            if (
                self.transfer_stop.id not in first
                or self.transfer_stop.id not in second
            ):
                raise ValueError("transfer stop must be served by both routes")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_fare(self) -> int:
        """Sum of all leg fares."""
        return sum(
            leg.fare or 0 for leg in (self.first_mile, self.bus_leg, self.last_mile)
        )

    @property
    def route_names(self) -> list[str]:
        return [route.name for route in self.routes]

    def __str__(self) -> str:
        via = f" via {self.transfer_stop.name}" if self.transfer_stop else ""
        return (
            f"{self.boarding_stop.name} → {self.alighting_stop.name}{via} "
            f"({' + '.join(self.route_names)}, {format_duration(self.total_duration_min)})"
        )

    def instructions(self) -> list[str]:
        """Step-by-step directions for the rider."""
        steps = [
            f"{_leg_verb(self.first_mile)} to {self.boarding_stop.name} stop "
            f"({format_duration(self.first_mile.duration_min)})"
        ]

        if self.transfer_stop is not None:
            first, second = self.routes
            steps.append(f"Take route {first.name} to {self.transfer_stop.name}")
            steps.append(
                f"Transfer to route {second.name} heading to {self.alighting_stop.name}"
            )
        else:
            steps.append(
                f"Take route {self.routes[0].name} to {self.alighting_stop.name}"
            )

        steps.append(
            f"{_leg_verb(self.last_mile)} to your destination "
            f"({format_duration(self.last_mile.duration_min)})"
        )
        return [f"{i}. {step}" for i, step in enumerate(steps, 1)]


def _leg_verb(leg: CostEstimate) -> str:
    distance = format_distance(leg.distance_m)
    if leg.mode == TransportMode.WALKING:
        return f"Walk {distance}"
    if leg.mode == TransportMode.CYCLING:
        return f"Cycle {distance}"
    if leg.mode == TransportMode.RICKSHAW:
        return f"Take a rickshaw ({distance})"
    return f"Take a motorbike taxi ({distance})"


class PlanStatus(str, Enum):
    """Outcome of a planning request."""

    FOUND = "found"
    OUT_OF_SERVICE_AREA = "out_of_service_area"
    NO_ROUTE_FOUND = "no_route_found"


class PlanResult(BaseModel):
    """Result of a planning request: a journey or the reason there is none."""

    model_config = ConfigDict(frozen=True)

    status: PlanStatus = Field(..., description="Planning outcome")
    origin: Coordinate = Field(..., description="Requested origin")
    destination: Coordinate = Field(..., description="Requested destination")
    journey: Journey | None = Field(None, description="Planned journey, if any")

    @property
    def found(self) -> bool:
        return self.journey is not None

    @property
    def message(self) -> str:
        if self.status == PlanStatus.OUT_OF_SERVICE_AREA:
            return "No bus stop within reach of the origin or destination"
        if self.status == PlanStatus.NO_ROUTE_FOUND:
            return "No direct or single-transfer route connects these points"
        return str(self.journey)
