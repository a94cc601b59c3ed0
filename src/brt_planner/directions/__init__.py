"""Road-routing collaborators used outside the planning core."""

from .client import MapboxDirectionsClient, RoadRoute
from .estimator import LegEstimator, RoadRoutingProvider

__all__ = ["LegEstimator", "MapboxDirectionsClient", "RoadRoute", "RoadRoutingProvider"]
