"""Transit network loading and read-only access."""

import json
import logging
import re
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from itertools import accumulate, pairwise
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from ..utils.geo import haversine_distance
from .exceptions import (
    MalformedNetworkError,
    NetworkIOError,
    NetworkNotLoadedError,
)
from .models import Route, Stop

logger = logging.getLogger(__name__)

# Trailing route number, e.g. "12" or "EV-3"
_ROUTE_NUMBER = re.compile(r"^(?P<prefix>.*?)(?P<number>\d+)$")


class NetworkSource(Protocol):
    """Anything that can produce a raw network description."""

    def read(self) -> Mapping[str, Any]:
        """Return the structured network description."""
        ...


class JsonFileNetworkSource:
    """Network description stored in a JSON file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def read(self) -> Mapping[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise NetworkIOError(f"Cannot read network file {self.path}: {e}") from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedNetworkError(
                f"Network file {self.path} is not valid JSON: {e}"
            ) from e

        if not isinstance(data, dict):
            raise MalformedNetworkError(
                f"Network file {self.path} must contain a JSON object"
            )
        return data

    def __repr__(self) -> str:
        return f"JsonFileNetworkSource({str(self.path)!r})"


class InMemoryNetworkSource:
    """Network description already held in memory."""

    def __init__(self, data: Mapping[str, Any]):
        self.data = data

    def read(self) -> Mapping[str, Any]:
        return self.data

    def __repr__(self) -> str:
        return "InMemoryNetworkSource()"


@dataclass(frozen=True)
class TransitNetwork:
    """Immutable snapshot of stops and routes.

    Built once by :func:`load_network`; shared by any number of planning calls.
    """

    stops: dict[str, Stop]
    routes: dict[str, Route]
    # cumulative along-route distance at each stop index, per route
    _cumulative: dict[str, tuple[float, ...]] = field(repr=False)
    _routes_by_stop: dict[str, tuple[str, ...]] = field(repr=False)

    @classmethod
    def build(cls, stops: Iterable[Stop], routes: Iterable[Route]) -> "TransitNetwork":
        stop_map = {stop.id: stop for stop in stops}
        route_map = {route.name: route for route in routes}

        cumulative: dict[str, tuple[float, ...]] = {}
        for route in route_map.values():
            legs = (
                haversine_distance(a.lat, a.lon, b.lat, b.lon)
                for a, b in pairwise(stop_map[sid] for sid in route.stop_ids)
            )
            cumulative[route.name] = tuple(accumulate(legs, initial=0.0))

        routes_by_stop: dict[str, list[str]] = {sid: [] for sid in stop_map}
        for route in route_map.values():
            for sid in route.stop_ids:
                routes_by_stop[sid].append(route.name)

        return cls(
            stops=stop_map,
            routes=route_map,
            _cumulative=cumulative,
            _routes_by_stop={k: tuple(v) for k, v in routes_by_stop.items()},
        )

    def routes_serving(self, stop_id: str) -> tuple[str, ...]:
        """Names of routes that stop at the given stop."""
        return self._routes_by_stop.get(stop_id, ())

    def segment_distance(self, route_name: str, stop_a: str, stop_b: str) -> float:
        """Along-route distance between two stops of a route, in meters.

        Routes run in both directions, so the result does not depend on the
        order of ``stop_a`` and ``stop_b``.

        Raises:
            KeyError: If the route is unknown or does not serve either stop
        """
        route = self.routes[route_name]
        i = route.index_of(stop_a)
        j = route.index_of(stop_b)
        if i is None or j is None:
            raise KeyError(f"Route {route_name} does not serve both {stop_a} and {stop_b}")

        cumulative = self._cumulative[route_name]
        lo, hi = min(i, j), max(i, j)
        return cumulative[hi] - cumulative[lo]


def route_sort_key(name: str) -> tuple[int, str, int, str]:
    """Sort key giving plain numbers first, then prefixed numbers, then the rest."""
    if name.isdigit():
        return (0, "", int(name), name)
    match = _ROUTE_NUMBER.match(name)
    if match:
        return (1, match["prefix"], int(match["number"]), name)
    return (2, name, 0, name)


def load_network(source: NetworkSource) -> TransitNetwork:
    """Parse a network description into a :class:`TransitNetwork`.

    Two layouts are accepted. The canonical one lists stops and routes
    separately::

        {"stops": [{"id", "name", "lat", "lon", "routes"}],
         "routes": [{"name", "stops": [stop ids], "color"}]}

    The nested layout embeds full stop records in each route::

        {"routes": [{"routeName", "stops": [{"stopId", "name", "lat", "lng"}]}]}

    Args:
        source: Where to read the description from

    Returns:
        Immutable network snapshot

    Raises:
        NetworkIOError: If the source cannot be read
        MalformedNetworkError: If the description is structurally invalid
    """
    data = source.read()
    if not isinstance(data, Mapping):
        raise MalformedNetworkError("Network description must be a mapping")

    if "stops" in data:
        stop_records, route_records = _canonical_records(data)
    elif "routes" in data:
        stop_records, route_records = _nested_records(data)
    else:
        raise MalformedNetworkError("Network description has no stops or routes")

    if not stop_records:
        raise MalformedNetworkError("Network description contains no stops")

    routes = _parse_routes(route_records)
    stops = _parse_stops(stop_records, routes)

    network = TransitNetwork.build(stops, routes)
    logger.info(
        f"Parsed network with {len(network.stops)} stops and {len(network.routes)} routes"
    )
    return network


def dump_network(network: TransitNetwork) -> dict[str, Any]:
    """Serialize a network in the canonical layout."""
    return {
        "stops": [
            {
                "id": stop.id,
                "name": stop.name,
                "lat": stop.lat,
                "lon": stop.lon,
                "routes": list(stop.routes),
            }
            for stop in network.stops.values()
        ],
        "routes": [
            {
                "name": route.name,
                "stops": list(route.stop_ids),
                **({"color": route.color} if route.color else {}),
            }
            for route in network.routes.values()
        ],
    }


def _canonical_records(
    data: Mapping[str, Any],
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    stops = data.get("stops")
    routes = data.get("routes", [])
    if not isinstance(stops, list) or not isinstance(routes, list):
        raise MalformedNetworkError("'stops' and 'routes' must be lists")

    route_records = []
    for raw in routes:
        if not isinstance(raw, dict):
            raise MalformedNetworkError(f"Route entry must be an object: {raw!r}")
        route_records.append(
            {
                "name": raw.get("name") or raw.get("routeName"),
                "stop_ids": raw.get("stops"),
                "color": raw.get("color"),
            }
        )
    return [_stop_record(raw) for raw in stops], route_records


def _nested_records(
    data: Mapping[str, Any],
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    routes = data.get("routes")
    if not isinstance(routes, list):
        raise MalformedNetworkError("'routes' must be a list")

    stop_records: dict[str, dict[str, Any]] = {}
    route_records = []
    for raw in routes:
        if not isinstance(raw, dict) or not isinstance(raw.get("stops"), list):
            raise MalformedNetworkError(f"Route entry must list its stops: {raw!r}")

        name = raw.get("routeName") or raw.get("name")
        stop_ids = []
        for raw_stop in raw["stops"]:
            record = _stop_record(raw_stop)
            stop_ids.append(record["id"])
            # the same stop appears once per route that serves it
            stop_records.setdefault(record["id"], record)
        route_records.append(
            {"name": name, "stop_ids": stop_ids, "color": raw.get("color")}
        )

    return list(stop_records.values()), route_records


def _stop_record(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise MalformedNetworkError(f"Stop entry must be an object: {raw!r}")

    stop_id = raw.get("id", raw.get("stopId"))
    lat = raw.get("lat")
    lon = raw.get("lon", raw.get("lng"))
    if stop_id is None:
        raise MalformedNetworkError(f"Stop entry has no id: {raw!r}")
    if lat is None or lon is None:
        raise MalformedNetworkError(f"Stop {stop_id} is missing coordinates")

    return {
        "id": str(stop_id),
        "name": raw.get("name") or str(stop_id),
        "lat": lat,
        "lon": lon,
        "routes": raw.get("routes") or [],
    }


def _parse_routes(records: list[dict[str, Any]]) -> list[Route]:
    routes: dict[str, Route] = {}
    for record in records:
        name = record["name"]
        if not name:
            raise MalformedNetworkError("Route entry has no name")
        if name in routes:
            raise MalformedNetworkError(f"Duplicate route name: {name}")
        if not isinstance(record["stop_ids"], list):
            raise MalformedNetworkError(f"Route {name} has no stop list")

        try:
            routes[name] = Route(
                name=str(name),
                stop_ids=tuple(str(sid) for sid in record["stop_ids"]),
                color=record.get("color"),
            )
        except PydanticValidationError as e:
            raise MalformedNetworkError(f"Invalid route {name}: {e}") from e

    return list(routes.values())


def _parse_stops(records: list[dict[str, Any]], routes: list[Route]) -> list[Stop]:
    route_names = {route.name for route in routes}
    served_by: dict[str, list[str]] = {}
    for route in routes:
        for sid in route.stop_ids:
            served_by.setdefault(sid, []).append(route.name)

    stops: dict[str, Stop] = {}
    for record in records:
        stop_id = record["id"]
        if stop_id in stops:
            raise MalformedNetworkError(f"Duplicate stop id: {stop_id}")

        declared = [str(name) for name in record["routes"]]
        unknown = [name for name in declared if name not in route_names]
        if unknown:
            raise MalformedNetworkError(
                f"Stop {stop_id} references unknown route(s): {', '.join(unknown)}"
            )

        served = served_by.get(stop_id, [])
        not_serving = [name for name in declared if name not in served]
        if not_serving:
            raise MalformedNetworkError(
                f"Stop {stop_id} declares route(s) that do not list it: "
                f"{', '.join(not_serving)}"
            )

        membership = list(dict.fromkeys(declared + served))
        try:
            stops[stop_id] = Stop(
                id=stop_id,
                name=str(record["name"]),
                lat=record["lat"],
                lon=record["lon"],
                routes=tuple(membership),
            )
        except PydanticValidationError as e:
            raise MalformedNetworkError(f"Invalid stop {stop_id}: {e}") from e

    dangling = sorted(set(served_by) - set(stops))
    if dangling:
        raise MalformedNetworkError(
            f"Routes reference unknown stop(s): {', '.join(dangling)}"
        )

    return list(stops.values())


class NetworkRepository:
    """Owns the currently installed transit network.

    Loading swaps in a complete snapshot under a lock, so concurrent readers see
    either the previous network or the new one, never a partial load. Readers do
    not lock.
    """

    def __init__(self, network: TransitNetwork | None = None):
        self._network = network
        self._lock = threading.Lock()

    @classmethod
    def from_source(cls, source: NetworkSource) -> "NetworkRepository":
        repository = cls()
        repository.load(source)
        return repository

    def load(self, source: NetworkSource) -> TransitNetwork:
        """Parse a network and install it.

        On failure the previously installed network (if any) stays in place.

        Raises:
            NetworkLoadError: If the source cannot be read or parsed
        """
        logger.info(f"Loading transit network from {source!r}")
        network = load_network(source)
        with self._lock:
            self._network = network
        logger.info(
            f"Installed network: {len(network.stops)} stops, {len(network.routes)} routes"
        )
        return network

    reload = load

    @property
    def is_loaded(self) -> bool:
        return self._network is not None

    @property
    def network(self) -> TransitNetwork:
        """The installed network snapshot.

        Raises:
            NetworkNotLoadedError: If nothing has been loaded yet
        """
        network = self._network
        if network is None:
            raise NetworkNotLoadedError("No transit network has been loaded")
        return network

    def all_stops(self) -> list[Stop]:
        return list(self.network.stops.values())

    def stop_by_id(self, stop_id: str) -> Stop | None:
        return self.network.stops.get(stop_id)

    def route_by_name(self, name: str) -> Route | None:
        return self.network.routes.get(name)

    def all_route_names(self) -> list[str]:
        """Route names in display order (1, 2, 10, ..., EV-1, EV-2, ...)."""
        return sorted(self.network.routes, key=route_sort_key)

    def routes_serving(self, stop_id: str) -> list[Route]:
        network = self.network
        return [network.routes[name] for name in network.routes_serving(stop_id)]

    def stops_on_route(self, name: str) -> list[Stop]:
        route = self.route_by_name(name)
        if route is None:
            return []
        return [self.network.stops[sid] for sid in route.stop_ids]

    def search_stops(self, query: str) -> list[Stop]:
        """Case-insensitive substring search on stop names."""
        needle = query.strip().lower()
        if not needle:
            return []
        return [stop for stop in self.all_stops() if needle in stop.name.lower()]

    def segment_distance(self, route_name: str, stop_a: str, stop_b: str) -> float:
        return self.network.segment_distance(route_name, stop_a, stop_b)
