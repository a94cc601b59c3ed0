"""Custom exceptions for BRT journey planning."""


class TransitPlannerError(Exception):
    """Base exception for journey planning errors."""

    pass


class ValidationError(TransitPlannerError):
    """Raised when input validation fails."""

    pass


class InvalidCoordinateError(ValidationError):
    """Raised when a latitude/longitude pair is outside WGS84 bounds."""

    pass


class NetworkLoadError(TransitPlannerError):
    """Base exception for failures while loading the transit network."""

    pass


class MalformedNetworkError(NetworkLoadError):
    """Raised when network data is structurally invalid."""

    pass


class NetworkIOError(NetworkLoadError):
    """Raised when the network data source cannot be read."""

    pass


class NetworkNotLoadedError(TransitPlannerError):
    """Raised when planning is attempted before a network is installed."""

    pass


class ConfigurationError(TransitPlannerError):
    """Raised when a settings file cannot be read or is invalid."""

    pass


class NetworkError(TransitPlannerError):
    """Raised when there's a network-related error."""

    pass


class DirectionsError(TransitPlannerError):
    """Raised when the road-routing service returns an unusable response."""

    pass
