"""Core journey planning functionality."""

from .config import CostingConfig, PlannerSettings, load_settings, save_settings
from .costing import CostingModel
from .exceptions import (
    ConfigurationError,
    DirectionsError,
    InvalidCoordinateError,
    MalformedNetworkError,
    NetworkError,
    NetworkIOError,
    NetworkLoadError,
    NetworkNotLoadedError,
    TransitPlannerError,
    ValidationError,
)
from .models import (
    CostEstimate,
    EstimateSource,
    Journey,
    PlanResult,
    PlanStatus,
    Route,
    Stop,
    TransportMode,
)
from .path_finder import PathCandidate, PathFinder
from .planner import JourneyPlanner
from .repository import (
    InMemoryNetworkSource,
    JsonFileNetworkSource,
    NetworkRepository,
    NetworkSource,
    TransitNetwork,
    dump_network,
    load_network,
)
from .spatial import NearestStopIndex, StopDistance

__all__ = [
    "CostEstimate",
    "CostingConfig",
    "CostingModel",
    "EstimateSource",
    "InMemoryNetworkSource",
    "Journey",
    "JourneyPlanner",
    "JsonFileNetworkSource",
    "NearestStopIndex",
    "NetworkRepository",
    "NetworkSource",
    "PathCandidate",
    "PathFinder",
    "PlanResult",
    "PlanStatus",
    "PlannerSettings",
    "Route",
    "Stop",
    "StopDistance",
    "TransitNetwork",
    "TransportMode",
    "dump_network",
    "load_network",
    "load_settings",
    "save_settings",
    "TransitPlannerError",
    "ValidationError",
    "InvalidCoordinateError",
    "NetworkLoadError",
    "MalformedNetworkError",
    "NetworkIOError",
    "NetworkNotLoadedError",
    "ConfigurationError",
    "NetworkError",
    "DirectionsError",
]
