"""Error taxonomy for the itinerary engine."""


class RoutePlannerError(Exception):
    """Base class for all engine errors."""

    retryable = False


class NotFoundError(RoutePlannerError):
    """Route, day, point or POI does not exist (or is not visible to the caller)."""

    pass


class ValidationError(RoutePlannerError):
    """Request rejected before any state was touched."""

    pass


class UpstreamUnavailableError(RoutePlannerError):
    """POI catalog timed out, failed, or its circuit breaker is open."""

    retryable = True


class ConcurrencyConflictError(RoutePlannerError):
    """Storage-level unique constraint rejected a write that passed the pre-check."""

    retryable = True
