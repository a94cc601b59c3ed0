"""BRT Journey Planner Package

A Python package for planning bus rapid transit journeys between two points,
with multi-modal cost estimates, a CLI and an MCP server.
"""

__version__ = "0.1.0"

from .core.models import CostEstimate, Journey, PlanResult, Route, Stop
from .core.planner import JourneyPlanner
from .core.repository import JsonFileNetworkSource, NetworkRepository

__all__ = [
    "CostEstimate",
    "Journey",
    "JourneyPlanner",
    "JsonFileNetworkSource",
    "NetworkRepository",
    "PlanResult",
    "Route",
    "Stop",
]
