"""Direct and single-transfer path search over the route network."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from .costing import CostingModel
from .models import Route, Stop
from .repository import TransitNetwork
from .spatial import StopDistance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathCandidate:
    """One way of connecting a boarding stop to an alighting stop."""

    boarding: StopDistance
    alighting: StopDistance
    routes: tuple[Route, ...]
    bus_distance_m: float
    transfer_stop: Stop | None = None

    @property
    def requires_transfer(self) -> bool:
        return self.transfer_stop is not None

    @property
    def transfers(self) -> int:
        return 1 if self.transfer_stop is not None else 0

    @property
    def score_m(self) -> float:
        """Walk to board + bus distance + walk from alighting."""
        return self.boarding.distance_m + self.bus_distance_m + self.alighting.distance_m


class PathFinder:
    """Connects candidate boarding stops to candidate alighting stops.

    Direct trips on a single route always win over trips with a transfer; the
    transfer search only runs when no direct trip exists for any candidate
    pair. Within a class, candidates are ranked by total distance, then total
    duration, then transfer count, then route names and stop ids so results
    are reproducible.
    """

    def __init__(self, network: TransitNetwork, costing: CostingModel):
        self.network = network
        self.costing = costing

    def find(
        self,
        boarding: Sequence[StopDistance],
        alighting: Sequence[StopDistance],
        departure_time: datetime,
    ) -> PathCandidate | None:
        """Best candidate, or None when no route connects any pair."""
        ranked = self.rank(boarding, alighting, departure_time)
        return ranked[0] if ranked else None

    def rank(
        self,
        boarding: Sequence[StopDistance],
        alighting: Sequence[StopDistance],
        departure_time: datetime,
    ) -> list[PathCandidate]:
        """All candidates of the preferred class, best first."""
        candidates = self.direct_candidates(boarding, alighting)
        if not candidates:
            logger.debug("No direct route between candidates, trying transfers")
            candidates = self.transfer_candidates(boarding, alighting)

        return sorted(
            candidates, key=lambda c: self._selection_key(c, departure_time)
        )

    def direct_candidates(
        self, boarding: Sequence[StopDistance], alighting: Sequence[StopDistance]
    ) -> list[PathCandidate]:
        candidates = []
        for board in boarding:
            board_routes = set(self.network.routes_serving(board.stop.id))
            for alight in alighting:
                if board.stop.id == alight.stop.id:
                    continue

                for name in self.network.routes_serving(alight.stop.id):
                    if name not in board_routes:
                        continue
                    candidates.append(
                        PathCandidate(
                            boarding=board,
                            alighting=alight,
                            routes=(self.network.routes[name],),
                            bus_distance_m=self.network.segment_distance(
                                name, board.stop.id, alight.stop.id
                            ),
                        )
                    )
        return candidates

    def transfer_candidates(
        self, boarding: Sequence[StopDistance], alighting: Sequence[StopDistance]
    ) -> list[PathCandidate]:
        candidates = []
        for board in boarding:
            for alight in alighting:
                if board.stop.id == alight.stop.id:
                    continue

                for first_name in self.network.routes_serving(board.stop.id):
                    for second_name in self.network.routes_serving(alight.stop.id):
                        if first_name == second_name:
                            continue
                        candidate = self._best_transfer(
                            board, alight, first_name, second_name
                        )
                        if candidate is not None:
                            candidates.append(candidate)
        return candidates

    def _best_transfer(
        self,
        board: StopDistance,
        alight: StopDistance,
        first_name: str,
        second_name: str,
    ) -> PathCandidate | None:
        first = self.network.routes[first_name]
        second = self.network.routes[second_name]

        best: tuple[float, str] | None = None
        for stop_id in first.stop_ids:
            if stop_id not in second:
                continue
            if stop_id in (board.stop.id, alight.stop.id):
                continue
            distance = self.network.segment_distance(
                first_name, board.stop.id, stop_id
            ) + self.network.segment_distance(second_name, stop_id, alight.stop.id)
            if best is None or (distance, stop_id) < best:
                best = (distance, stop_id)

        if best is None:
            return None

        distance, stop_id = best
        return PathCandidate(
            boarding=board,
            alighting=alight,
            routes=(first, second),
            bus_distance_m=distance,
            transfer_stop=self.network.stops[stop_id],
        )

    def estimated_duration(
        self, candidate: PathCandidate, departure_time: datetime
    ) -> float:
        """Door-to-door minutes for a candidate, excluding the boarding wait."""
        first_mile = self.costing.estimate_last_mile(
            candidate.boarding.distance_m, departure_time
        )
        bus_leg = self.costing.estimate_bus_leg(
            candidate.bus_distance_m, departure_time, candidate.requires_transfer
        )
        last_mile = self.costing.estimate_last_mile(
            candidate.alighting.distance_m, departure_time
        )
        return first_mile.duration_min + bus_leg.duration_min + last_mile.duration_min

    def _selection_key(
        self, candidate: PathCandidate, departure_time: datetime
    ) -> tuple[float, float, int, tuple[str, ...], str, str, str]:
        # distances compare at decimeter precision
        return (
            round(candidate.score_m, 1),
            round(self.estimated_duration(candidate, departure_time), 3),
            candidate.transfers,
            tuple(route.name for route in candidate.routes),
            candidate.boarding.stop.id,
            candidate.alighting.stop.id,
            candidate.transfer_stop.id if candidate.transfer_stop else "",
        )
