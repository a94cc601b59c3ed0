"""Unit tests for network loading and the repository."""

import json
import threading

import pytest

from brt_planner.core.exceptions import (
    MalformedNetworkError,
    NetworkIOError,
    NetworkLoadError,
    NetworkNotLoadedError,
)
from brt_planner.core.repository import (
    InMemoryNetworkSource,
    JsonFileNetworkSource,
    NetworkRepository,
    dump_network,
    load_network,
    route_sort_key,
)
from brt_planner.utils.geo import haversine_distance


def _declare_route_not_serving(data):
    data["stops"].append({"id": "D", "name": "Delta", "lat": 0.0, "lon": 0.03})
    data["routes"].append({"name": "R2", "stops": ["C", "D"]})
    data["stops"][0]["routes"] = ["R1", "R2"]


class TestLoadNetwork:
    """Test parsing network descriptions."""

    def test_canonical_layout(self, line_network_data):
        """Test the stops + routes layout."""
        network = load_network(InMemoryNetworkSource(line_network_data))

        assert set(network.stops) == {"A", "B", "C"}
        assert network.routes["R1"].stop_ids == ("A", "B", "C")
        assert network.routes["R1"].color == "#E53935"
        assert network.stops["B"].routes == ("R1",)

    def test_lng_alias(self, line_network_data):
        """Test longitude may be given as lng."""
        for stop in line_network_data["stops"]:
            stop["lng"] = stop.pop("lon")

        network = load_network(InMemoryNetworkSource(line_network_data))
        assert network.stops["C"].lon == 0.02

    def test_nested_layout(self):
        """Test routes embedding their stop records."""
        data = {
            "routes": [
                {
                    "routeName": "R1",
                    "stops": [
                        {"stopId": "A", "name": "Alpha", "lat": 0.0, "lng": 0.0},
                        {"stopId": "B", "name": "Bravo", "lat": 0.0, "lng": 0.01},
                    ],
                },
                {
                    "routeName": "R2",
                    "stops": [
                        {"stopId": "B", "name": "Bravo", "lat": 0.0, "lng": 0.01},
                        {"stopId": "C", "name": "Charlie", "lat": 0.0, "lng": 0.02},
                    ],
                },
            ]
        }

        network = load_network(InMemoryNetworkSource(data))
        assert len(network.stops) == 3
        assert network.stops["B"].routes == ("R1", "R2")

    def test_declared_and_served_routes_are_merged(self, line_network_data):
        """Test a stop's routes include routes that list it."""
        line_network_data["routes"].append({"name": "R2", "stops": ["A", "C"]})
        line_network_data["stops"][0]["routes"] = ["R2"]

        network = load_network(InMemoryNetworkSource(line_network_data))
        assert network.stops["A"].routes == ("R2", "R1")

    @pytest.mark.parametrize(
        "mutate,message",
        [
            (lambda d: d["stops"][0].pop("lat"), "missing coordinates"),
            (lambda d: d["stops"].append(dict(d["stops"][0])), "Duplicate stop id"),
            (lambda d: d["routes"].append(dict(d["routes"][0])), "Duplicate route"),
            (lambda d: d["routes"][0].update(stops=["A"]), "at least 2 stops"),
            (lambda d: d["routes"][0].update(stops=["A", "B", "A"]), "same stop twice"),
            (lambda d: d["routes"][0].update(stops=["A", "Z"]), "unknown stop"),
            (lambda d: d["stops"][0].update(routes=["R9"]), "unknown route"),
            (_declare_route_not_serving, "do not list it"),
            (lambda d: d.update(stops=[]), "no stops"),
        ],
    )
    def test_malformed(self, line_network_data, mutate, message):
        """Test structural problems are reported."""
        mutate(line_network_data)
        with pytest.raises(MalformedNetworkError, match=message):
            load_network(InMemoryNetworkSource(line_network_data))

    def test_json_file_source(self, network_file):
        """Test reading a JSON file."""
        network = load_network(JsonFileNetworkSource(network_file))
        assert "S06" in network.stops

    def test_missing_file(self, tmp_path):
        """Test an unreadable file."""
        with pytest.raises(NetworkIOError):
            load_network(JsonFileNetworkSource(tmp_path / "absent.json"))

    def test_invalid_json_file(self, tmp_path):
        """Test a file with broken JSON."""
        path = tmp_path / "network.json"
        path.write_text("[1, 2")
        with pytest.raises(MalformedNetworkError, match="not valid JSON"):
            load_network(JsonFileNetworkSource(path))

    def test_dump_round_trip(self, karachi_network_data):
        """Test dumped networks load back to the same stops and routes."""
        network = load_network(InMemoryNetworkSource(karachi_network_data))
        reloaded = load_network(InMemoryNetworkSource(dump_network(network)))

        assert reloaded.stops == network.stops
        assert reloaded.routes == network.routes


class TestSegmentDistance:
    """Test along-route distances."""

    def test_sum_of_consecutive_legs(self, karachi_network_data):
        """Test segment distance adds up hops between stops."""
        network = load_network(InMemoryNetworkSource(karachi_network_data))
        stops = network.stops

        expected = sum(
            haversine_distance(stops[a].lat, stops[a].lon, stops[b].lat, stops[b].lon)
            for a, b in [("S10", "S12"), ("S12", "S14"), ("S14", "S06")]
        )
        assert network.segment_distance("2", "S10", "S06") == pytest.approx(expected)

    def test_symmetric(self, karachi_network_data):
        """Test the order of the two stops does not matter."""
        network = load_network(InMemoryNetworkSource(karachi_network_data))
        for route in network.routes.values():
            for a in route.stop_ids:
                for b in route.stop_ids:
                    assert network.segment_distance(
                        route.name, a, b
                    ) == pytest.approx(network.segment_distance(route.name, b, a))

    def test_same_stop_is_zero(self, line_network_data):
        """Test a stop to itself."""
        network = load_network(InMemoryNetworkSource(line_network_data))
        assert network.segment_distance("R1", "B", "B") == 0.0

    def test_stop_not_on_route(self, karachi_network_data):
        """Test asking for a stop the route does not serve."""
        network = load_network(InMemoryNetworkSource(karachi_network_data))
        with pytest.raises(KeyError):
            network.segment_distance("1", "S01", "S12")


class TestRouteSortKey:
    """Test route display order."""

    def test_order(self):
        """Test numbers, then prefixed numbers, then other names."""
        names = ["EV-2", "Green Line", "10", "EV-10", "2", "EV-1", "1"]
        assert sorted(names, key=route_sort_key) == [
            "1",
            "2",
            "10",
            "EV-1",
            "EV-2",
            "EV-10",
            "Green Line",
        ]


class TestNetworkRepository:
    """Test repository access and loading."""

    def test_not_loaded(self):
        """Test accessing an empty repository."""
        repository = NetworkRepository()
        assert not repository.is_loaded
        with pytest.raises(NetworkNotLoadedError):
            repository.all_stops()

    def test_accessors(self, make_repository, karachi_network_data):
        """Test lookups on a loaded network."""
        repository = make_repository(karachi_network_data)

        assert repository.is_loaded
        assert len(repository.all_stops()) == 7
        assert repository.stop_by_id("S12").name == "NIPA"
        assert repository.stop_by_id("nope") is None
        assert repository.route_by_name("EV-1").stop_ids == ("S30", "S10", "S03")
        assert repository.route_by_name("99") is None
        assert repository.all_route_names() == ["1", "2", "EV-1"]
        assert [r.name for r in repository.routes_serving("S03")] == ["1", "EV-1"]
        assert [s.id for s in repository.stops_on_route("1")] == ["S01", "S03", "S06"]
        assert repository.stops_on_route("99") == []

    def test_search_stops(self, make_repository, karachi_network_data):
        """Test case-insensitive substring search."""
        repository = make_repository(karachi_network_data)

        assert [s.id for s in repository.search_stops("malir")] == ["S01", "S30"]
        assert repository.search_stops("  ") == []
        assert repository.search_stops("xyz") == []

    def test_failed_reload_keeps_previous_network(
        self, make_repository, karachi_network_data
    ):
        """Test a bad reload leaves the installed network in place."""
        repository = make_repository(karachi_network_data)
        before = repository.network

        with pytest.raises(NetworkLoadError):
            repository.reload(InMemoryNetworkSource({"stops": []}))

        assert repository.network is before

    def test_reload_swaps_network(
        self, make_repository, karachi_network_data, line_network_data
    ):
        """Test reloading installs the new snapshot."""
        repository = make_repository(karachi_network_data)
        repository.reload(InMemoryNetworkSource(line_network_data))
        assert repository.all_route_names() == ["R1"]

    def test_concurrent_readers_see_complete_networks(
        self, make_repository, karachi_network_data, line_network_data
    ):
        """Test readers never observe a partially loaded network."""
        repository = make_repository(karachi_network_data)
        sizes = set()

        def read():
            for _ in range(200):
                network = repository.network
                sizes.add((len(network.stops), len(network.routes)))

        def write():
            for i in range(20):
                data = line_network_data if i % 2 else karachi_network_data
                repository.load(InMemoryNetworkSource(data))

        threads = [threading.Thread(target=read) for _ in range(4)]
        threads.append(threading.Thread(target=write))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sizes <= {(7, 3), (3, 1)}

    def test_file_round_trip(self, tmp_path, make_repository, karachi_network_data):
        """Test dumping to disk and loading through the file source."""
        repository = make_repository(karachi_network_data)
        path = tmp_path / "dump.json"
        path.write_text(json.dumps(dump_network(repository.network)))

        reloaded = NetworkRepository.from_source(JsonFileNetworkSource(path))
        assert reloaded.all_route_names() == repository.all_route_names()
