"""In-memory implementation of the route repository."""

import uuid

from route_planner.db.context import RequestContext
from route_planner.db.repositories import RouteSummary
from route_planner.errors import ConcurrencyConflictError
from route_planner.models.route import Route


class InMemoryRouteRepository:
    """In-memory implementation of RouteRepository.

    Stores deep copies, so callers mutating a loaded route never touch stored
    state until ``save_route`` succeeds. The (user, name, archived) check in
    ``save_route`` plays the role of the storage unique constraint.
    """

    def __init__(self) -> None:
        self._routes: dict[uuid.UUID, Route] = {}

    def get_route(self, route_id: uuid.UUID, ctx: RequestContext) -> Route | None:
        """Get route by ID."""
        route = self._routes.get(route_id)

        if route is None:
            return None

        # Enforce ownership
        if route.user_id != ctx.user_id:
            return None

        return route.model_copy(deep=True)

    def list_routes(
        self, ctx: RequestContext, *, archived: bool, city_id: int | None = None
    ) -> list[RouteSummary]:
        """List routes for user."""
        results = [
            RouteSummary.from_route(route)
            for route in self._routes.values()
            if route.user_id == ctx.user_id
            and route.is_archived == archived
            and (city_id is None or route.city_id == city_id)
        ]

        results.sort(key=lambda x: x.created_at, reverse=True)
        return results

    def count_routes(self, ctx: RequestContext, *, archived: bool = False) -> int:
        """Count routes for user."""
        return sum(
            1
            for route in self._routes.values()
            if route.user_id == ctx.user_id and route.is_archived == archived
        )

    def name_exists(
        self,
        ctx: RequestContext,
        name: str,
        *,
        archived: bool,
        exclude_route_id: uuid.UUID | None = None,
    ) -> bool:
        """Check whether the name is taken."""
        return any(
            route.user_id == ctx.user_id
            and route.name == name
            and route.is_archived == archived
            and route.route_id != exclude_route_id
            for route in self._routes.values()
        )

    def save_route(self, route: Route) -> None:
        """Insert or replace route."""
        for stored in self._routes.values():
            if (
                stored.route_id != route.route_id
                and stored.user_id == route.user_id
                and stored.name == route.name
                and stored.is_archived == route.is_archived
            ):
                raise ConcurrencyConflictError(
                    f"Route name '{route.name}' already exists for this user"
                )

        self._routes[route.route_id] = route.model_copy(deep=True)

    def delete_route(self, route_id: uuid.UUID, ctx: RequestContext) -> bool:
        """Delete route."""
        route = self._routes.get(route_id)
        if route is None or route.user_id != ctx.user_id:
            return False

        del self._routes[route_id]
        return True
