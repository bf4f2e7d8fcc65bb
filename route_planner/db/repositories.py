"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from route_planner.db.context import RequestContext
from route_planner.models.common import TransportMode
from route_planner.models.route import Route


@dataclass
class RouteSummary:
    """Summary of a route for listing."""

    route_id: UUID
    name: str
    city_id: int
    transport_mode: TransportMode
    is_archived: bool
    is_optimized: bool
    day_count: int
    point_count: int
    distance_km: float
    duration_min: int
    created_at: datetime

    @classmethod
    def from_route(cls, route: Route) -> "RouteSummary":
        return cls(
            route_id=route.route_id,
            name=route.name,
            city_id=route.city_id,
            transport_mode=route.transport_mode,
            is_archived=route.is_archived,
            is_optimized=route.is_optimized,
            day_count=len(route.days),
            point_count=sum(len(d.points) for d in route.days),
            distance_km=route.distance_km,
            duration_min=route.duration_min,
            created_at=route.created_at,
        )


class RouteRepository(Protocol):
    """Repository for route aggregates.

    ``save`` and ``delete`` are each one all-or-nothing transaction.
    """

    def get_route(self, route_id: UUID, ctx: RequestContext) -> Route | None:
        """Get a full route aggregate by ID.

        Args:
            route_id: Route ID
            ctx: Request context (enforces ownership)

        Returns:
            Route or None if not found
        """
        ...

    def list_routes(
        self, ctx: RequestContext, *, archived: bool, city_id: int | None = None
    ) -> list[RouteSummary]:
        """List the owner's routes, newest first.

        Args:
            ctx: Request context (enforces ownership)
            archived: List archived (True) or active (False) routes
            city_id: Optional city filter

        Returns:
            List of route summaries
        """
        ...

    def count_routes(self, ctx: RequestContext, *, archived: bool = False) -> int:
        """Count the owner's routes in one archived state."""
        ...

    def name_exists(
        self,
        ctx: RequestContext,
        name: str,
        *,
        archived: bool,
        exclude_route_id: UUID | None = None,
    ) -> bool:
        """Fast-path uniqueness check; the storage constraint is authoritative.

        Args:
            ctx: Request context
            name: Candidate route name
            archived: Archived state to check within
            exclude_route_id: Route to ignore (the one being renamed)

        Returns:
            True if another route already uses the name
        """
        ...

    def save_route(self, route: Route) -> None:
        """Insert or fully replace a route aggregate.

        Raises:
            ConcurrencyConflictError: A unique constraint rejected the write
        """
        ...

    def delete_route(self, route_id: UUID, ctx: RequestContext) -> bool:
        """Delete a route with its days and points.

        Returns:
            True if a route was deleted
        """
        ...
