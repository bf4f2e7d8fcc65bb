"""Read-through cache for route aggregates."""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from route_planner.db.context import RequestContext
from route_planner.models.route import Route
from route_planner.services.itinerary import ItineraryService

logger = logging.getLogger(__name__)

# Service methods that change a stored route; their second argument is the route ID
MUTATIONS = frozenset(
    {
        "update_itinerary",
        "archive",
        "unarchive",
        "delete",
        "add_point",
        "remove_point",
        "reorder_points",
        "optimize",
    }
)


@dataclass
class CacheEntry:
    """Cached route with metadata."""

    value: Route
    cached_at: datetime
    ttl_seconds: int

    def is_fresh(self, now: datetime) -> bool:
        """Check if cache entry is still valid."""
        return (now - self.cached_at).total_seconds() < self.ttl_seconds


class RouteCache:
    """In-memory cache of route aggregates keyed by owner and route."""

    def __init__(self) -> None:
        self._cache: dict[str, CacheEntry] = {}

    @staticmethod
    def make_key(ctx: RequestContext, route_id: uuid.UUID) -> str:
        return f"{ctx.user_id}:{route_id}"

    def get(self, key: str, now: datetime) -> Route | None:
        """Get a copy of the cached route if fresh, None otherwise."""
        entry = self._cache.get(key)
        if entry and entry.is_fresh(now):
            return entry.value.model_copy(deep=True)
        elif entry:
            # Expired - remove
            del self._cache[key]
        return None

    def set(self, key: str, value: Route, ttl_seconds: int, now: datetime) -> None:
        """Store a copy of the route with TTL."""
        self._cache[key] = CacheEntry(
            value=value.model_copy(deep=True), cached_at=now, ttl_seconds=ttl_seconds
        )

    def evict(self, key: str) -> None:
        self._cache.pop(key, None)

    def __len__(self) -> int:
        return len(self._cache)


class CachedItineraryService:
    """ItineraryService wrapper caching ``get_itinerary`` for ``ttl_seconds``.

    Any mutation of a route evicts its entry, so a caller always reads its own
    writes. Other methods pass straight through.
    """

    def __init__(
        self,
        service: ItineraryService,
        ttl_seconds: int,
        cache: RouteCache | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._service = service
        self._ttl_seconds = ttl_seconds
        self._cache = cache if cache is not None else RouteCache()
        self._clock = clock

    def get_itinerary(self, ctx: RequestContext, route_id: uuid.UUID) -> Route:
        key = RouteCache.make_key(ctx, route_id)
        now = self._clock()

        cached = self._cache.get(key, now)
        if cached is not None:
            logger.debug("Route cache hit: %s", key)
            return cached

        route = self._service.get_itinerary(ctx, route_id)
        self._cache.set(key, route, self._ttl_seconds, now)
        return route

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._service, name)
        if name not in MUTATIONS:
            return attr

        def evicting(ctx: RequestContext, route_id: uuid.UUID, *args: Any, **kwargs: Any) -> Any:
            try:
                return attr(ctx, route_id, *args, **kwargs)
            finally:
                self._cache.evict(RouteCache.make_key(ctx, route_id))

        return evicting
