"""Test configuration and fixtures."""

import json
from datetime import datetime

import pytest

from brt_planner.core.repository import InMemoryNetworkSource, NetworkRepository


@pytest.fixture
def line_network_data():
    """Three stops 0.01 degrees apart on the equator, all on route R1."""
    return {
        "stops": [
            {"id": "A", "name": "Alpha", "lat": 0.0, "lon": 0.0},
            {"id": "B", "name": "Bravo", "lat": 0.0, "lon": 0.01},
            {"id": "C", "name": "Charlie", "lat": 0.0, "lon": 0.02},
        ],
        "routes": [{"name": "R1", "stops": ["A", "B", "C"], "color": "#E53935"}],
    }


@pytest.fixture
def transfer_network_data():
    """R1 = [A, B] and R2 = [B, C], stops further apart than the search radius."""
    return {
        "stops": [
            {"id": "A", "name": "Alpha", "lat": 0.0, "lon": 0.0},
            {"id": "B", "name": "Bravo", "lat": 0.0, "lon": 0.05},
            {"id": "C", "name": "Charlie", "lat": 0.0, "lon": 0.10},
        ],
        "routes": [
            {"name": "R1", "stops": ["A", "B"]},
            {"name": "R2", "stops": ["B", "C"]},
        ],
    }


@pytest.fixture
def disconnected_network_data():
    """Two routes that share no stop."""
    return {
        "stops": [
            {"id": "A", "name": "Alpha", "lat": 0.0, "lon": 0.0},
            {"id": "B", "name": "Bravo", "lat": 0.0, "lon": 0.01},
            {"id": "C", "name": "Charlie", "lat": 0.0, "lon": 0.10},
            {"id": "D", "name": "Delta", "lat": 0.0, "lon": 0.11},
        ],
        "routes": [
            {"name": "R1", "stops": ["A", "B"]},
            {"name": "R2", "stops": ["C", "D"]},
        ],
    }


@pytest.fixture
def karachi_network_data():
    """Small network modelled on Karachi bus corridors."""
    return {
        "stops": [
            {"id": "S01", "name": "Malir Halt", "lat": 24.8885, "lon": 67.1905},
            {"id": "S03", "name": "Drigh Road", "lat": 24.8690, "lon": 67.1270},
            {"id": "S06", "name": "Metropole", "lat": 24.8470, "lon": 67.0300},
            {"id": "S10", "name": "Safoora Chowrangi", "lat": 24.9420, "lon": 67.1500},
            {"id": "S12", "name": "NIPA", "lat": 24.9180, "lon": 67.0970},
            {"id": "S14", "name": "Numaish", "lat": 24.8750, "lon": 67.0360},
            {"id": "S30", "name": "Malir Cantt", "lat": 24.9440, "lon": 67.2060},
        ],
        "routes": [
            {"name": "1", "stops": ["S01", "S03", "S06"], "color": "#E53935"},
            {"name": "2", "stops": ["S10", "S12", "S14", "S06"], "color": "#1E88E5"},
            {"name": "EV-1", "stops": ["S30", "S10", "S03"], "color": "#8E24AA"},
        ],
    }


@pytest.fixture
def make_repository():
    """Build a loaded repository from raw network data."""

    def _make(data):
        return NetworkRepository.from_source(InMemoryNetworkSource(data))

    return _make


@pytest.fixture
def network_file(tmp_path, karachi_network_data):
    """Karachi sample network written to a JSON file."""
    path = tmp_path / "network.json"
    path.write_text(json.dumps(karachi_network_data), encoding="utf-8")
    return path


@pytest.fixture
def off_peak():
    """A departure outside every traffic window."""
    return datetime(2025, 3, 1, 12, 0)


@pytest.fixture
def morning_peak():
    """A departure inside the 08-10 traffic window."""
    return datetime(2025, 3, 1, 8, 30)
