"""Multi-modal distance, duration and fare estimation."""

from datetime import datetime

from .config import CostingConfig
from .exceptions import ConfigurationError, ValidationError
from .models import CostEstimate, EstimateSource, TransportMode

MOTORIZED_MODES = frozenset(
    {TransportMode.RICKSHAW, TransportMode.MOTORBIKE_TAXI, TransportMode.BUS}
)
FREE_MODES = frozenset({TransportMode.WALKING, TransportMode.CYCLING})


class CostingModel:
    """Turns distances into durations and fares.

    Every method is a pure function of its arguments and the configuration it
    was built with. Straight-line distances are first inflated by a per-mode
    road-network factor; durations and fares are computed from that corrected
    distance. Motorized durations are scaled by a time-of-day congestion
    multiplier taken from the departure hour.
    """

    def __init__(self, config: CostingConfig | None = None):
        self.config = config or CostingConfig()

    def corrected_distance(self, distance_m: float, mode: TransportMode) -> float:
        """Estimate road distance from a straight-line distance."""
        if distance_m < 0:
            raise ValidationError(f"Distance cannot be negative: {distance_m}")
        return distance_m * self.config.road_factors[mode]

    def traffic_multiplier(self, departure_time: datetime) -> float:
        """Congestion multiplier for the departure hour (1.0 outside windows)."""
        hour = departure_time.hour
        for window in self.config.traffic_windows:
            if window.covers(hour):
                return window.multiplier
        return 1.0

    def estimate_duration(
        self, distance_m: float, mode: TransportMode, departure_time: datetime
    ) -> float:
        """Travel time in minutes for a straight-line distance."""
        return self.travel_minutes(
            self.corrected_distance(distance_m, mode), mode, departure_time
        )

    def travel_minutes(
        self, road_distance_m: float, mode: TransportMode, departure_time: datetime
    ) -> float:
        """Travel time in minutes for a distance that is already a road distance."""
        speed_kmh = self.config.speeds_kmh[mode]
        minutes = road_distance_m / 1000.0 / speed_kmh * 60.0
        if mode in MOTORIZED_MODES:
            minutes *= self.traffic_multiplier(departure_time)
        return minutes

    def estimate_fare(self, distance_m: float, mode: TransportMode) -> int:
        """Fare for a straight-line distance (0 for walking and cycling)."""
        return self.fare_for_road_distance(
            self.corrected_distance(distance_m, mode), mode
        )

    def fare_for_road_distance(self, road_distance_m: float, mode: TransportMode) -> int:
        if mode in FREE_MODES:
            return 0
        if mode == TransportMode.BUS:
            return self.config.bus_base_fare

        table = self.config.fare_tables.get(mode)
        if table is None:
            raise ConfigurationError(f"No fare table configured for {mode.value}")
        return table.fare_for(road_distance_m)

    def estimate_leg(
        self, distance_m: float, mode: TransportMode, departure_time: datetime
    ) -> CostEstimate:
        """Full local estimate for a leg given its straight-line distance."""
        road_distance = self.corrected_distance(distance_m, mode)
        return CostEstimate(
            distance_m=road_distance,
            duration_min=self.travel_minutes(road_distance, mode, departure_time),
            fare=None
            if mode in FREE_MODES
            else self.fare_for_road_distance(road_distance, mode),
            mode=mode,
            source=EstimateSource.LOCAL_CORRECTED,
        )

    def estimate_bus_leg(
        self,
        route_distance_m: float,
        departure_time: datetime,
        requires_transfer: bool = False,
    ) -> CostEstimate:
        """Estimate for riding the bus over an along-route distance."""
        if route_distance_m < 0:
            raise ValidationError(f"Distance cannot be negative: {route_distance_m}")

        duration = self.travel_minutes(
            route_distance_m, TransportMode.BUS, departure_time
        )
        if requires_transfer:
            duration += self.config.transfer_delay_min

        return CostEstimate(
            distance_m=route_distance_m,
            duration_min=duration,
            fare=self.config.bus_base_fare,
            mode=TransportMode.BUS,
            source=EstimateSource.LOCAL_CORRECTED,
        )

    def suggest_mode(self, distance_m: float) -> TransportMode:
        """Advisory last-mile mode for a straight-line distance."""
        thresholds = self.config.thresholds
        if distance_m < thresholds.walk_max_m:
            return TransportMode.WALKING
        if distance_m < thresholds.rickshaw_max_m:
            return TransportMode.RICKSHAW
        return TransportMode.MOTORBIKE_TAXI

    def estimate_last_mile(
        self, distance_m: float, departure_time: datetime
    ) -> CostEstimate:
        """Estimate a first/last-mile leg using the suggested mode."""
        return self.estimate_leg(
            distance_m, self.suggest_mode(distance_m), departure_time
        )
