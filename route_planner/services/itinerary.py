"""Itinerary mutation and statistics engine.

Every mutating operation follows the same shape: load the owner's route,
validate, mutate the loaded copy, recompute aggregates, check invariants and
hand the whole aggregate to ``RouteRepository.save_route`` (one transaction).
A failure anywhere before the save leaves stored state untouched.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

from route_planner.adapters.poi_gateway import PoiGateway
from route_planner.config import Settings, get_settings
from route_planner.db.context import RequestContext
from route_planner.db.repositories import RouteRepository, RouteSummary
from route_planner.errors import NotFoundError, UpstreamUnavailableError, ValidationError
from route_planner.geo.distance import Metric, haversine_km
from route_planner.models.common import OptimizationMode, TransportMode
from route_planner.models.poi import EnrichedDay, EnrichedPoint, EnrichedRoute, Poi
from route_planner.models.route import Route, RouteDay, RoutePoint
from route_planner.optimization.sequencer import DaySequencer, Stop, coerce_mode
from route_planner.optimization.statistics import RouteStatistics

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (copy)"


class ItineraryService:
    """Create, mutate, optimize and read route aggregates."""

    def __init__(
        self,
        repository: RouteRepository,
        gateway: PoiGateway,
        *,
        settings: Settings | None = None,
        metric: Metric = haversine_km,
        sequencer: DaySequencer | None = None,
        statistics: RouteStatistics | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize service.

        Args:
            repository: Route storage
            gateway: POI catalog client
            settings: Settings (defaults to the cached application settings)
            metric: Distance function shared by the optimizer and the statistics
            sequencer: Day optimizer (built from ``metric`` when omitted)
            statistics: Aggregate calculator (built from ``metric`` when omitted)
            clock: Injectable "now" for timestamps
        """
        self._repository = repository
        self._gateway = gateway
        self._settings = settings or get_settings()
        self._sequencer = sequencer or DaySequencer(
            metric=metric, exhaustive_limit=self._settings.exhaustive_search_limit
        )
        self._statistics = statistics or RouteStatistics(
            metric=metric, default_visit_minutes=self._settings.default_visit_minutes
        )
        self._clock = clock

    # Reads

    def get_itinerary(self, ctx: RequestContext, route_id: uuid.UUID) -> Route:
        """Get a route by ID.

        Raises:
            NotFoundError: Route missing or owned by someone else
        """
        return self._load(ctx, route_id)

    def list_itineraries(
        self, ctx: RequestContext, *, archived: bool = False, city_id: int | None = None
    ) -> list[RouteSummary]:
        """List active (default) or archived routes of the caller, newest first."""
        return self._repository.list_routes(ctx, archived=archived, city_id=city_id)

    def count_itineraries(self, ctx: RequestContext) -> int:
        """Number of active routes of the caller."""
        return self._repository.count_routes(ctx, archived=False)

    def is_name_available(self, ctx: RequestContext, name: str) -> bool:
        """True when no active route of the caller uses ``name``."""
        return not self._repository.name_exists(ctx, name, archived=False)

    def enrich(self, route: Route) -> EnrichedRoute:
        """Pair every point with fresh catalog data.

        Falls back to the cached snapshots (``from_snapshot=True``) when the
        catalog is unavailable.
        """
        from_snapshot = False
        try:
            pois = self._fetch_pois(route)
        except UpstreamUnavailableError:
            logger.warning("POI catalog unavailable; serving route %s from snapshots", route.route_id)
            pois = {}
            from_snapshot = True

        days = [
            EnrichedDay(
                day_number=day.day_number,
                points=[EnrichedPoint(point=p, poi=pois.get(p.poi_id)) for p in day.points],
            )
            for day in sorted(route.days, key=lambda d: d.day_number)
        ]
        return EnrichedRoute(route=route, days=days, from_snapshot=from_snapshot)

    # Route lifecycle

    def create_itinerary(
        self,
        ctx: RequestContext,
        *,
        name: str,
        city_id: int,
        transport_mode: TransportMode = TransportMode.walk,
        days_count: int = 1,
        start_date: datetime | None = None,
        description: str | None = None,
    ) -> Route:
        """Create a route with ``days_count`` empty, sequentially numbered days.

        Raises:
            ValidationError: Bad name/description, day count out of range, or name taken
            ConcurrencyConflictError: Name taken by a concurrent create
        """
        logger.info("Creating route for user %s: %s", ctx.user_id, name)

        self._validate_name(name)
        self._validate_description(description)
        if not self._settings.min_days <= days_count <= self._settings.max_days:
            raise ValidationError(
                f"Day count must be between {self._settings.min_days} and {self._settings.max_days}"
            )
        if self._repository.name_exists(ctx, name, archived=False):
            raise ValidationError(f"Route '{name}' already exists")

        now = self._clock()
        route = Route(
            user_id=ctx.user_id,
            name=name,
            description=description,
            city_id=city_id,
            transport_mode=transport_mode,
            created_at=now,
            updated_at=now,
        )
        for number in range(1, days_count + 1):
            route.days.append(self._new_day(number, start_date))

        self._commit(route)
        logger.info("Route created successfully: %s", route.route_id)
        return route

    def update_itinerary(
        self,
        ctx: RequestContext,
        route_id: uuid.UUID,
        *,
        name: str | None = None,
        description: str | None = None,
        transport_mode: TransportMode | None = None,
    ) -> Route:
        """Edit route metadata; a new transport mode re-prices travel time."""
        logger.info("Updating route %s for user %s", route_id, ctx.user_id)
        route = self._load(ctx, route_id)

        if name is not None and name != route.name:
            self._validate_name(name)
            if self._repository.name_exists(
                ctx, name, archived=route.is_archived, exclude_route_id=route.route_id
            ):
                raise ValidationError(f"Route '{name}' already exists")
            route.name = name
        if description is not None:
            self._validate_description(description)
            route.description = description
        if transport_mode is not None:
            route.transport_mode = transport_mode

        self._commit(route)
        return route

    def archive(self, ctx: RequestContext, route_id: uuid.UUID) -> Route:
        """Hide a route from active listings; days and points are untouched."""
        logger.info("Archiving route %s for user %s", route_id, ctx.user_id)
        return self._set_archived(ctx, route_id, True)

    def unarchive(self, ctx: RequestContext, route_id: uuid.UUID) -> Route:
        """Return an archived route to active listings."""
        logger.info("Unarchiving route %s for user %s", route_id, ctx.user_id)
        return self._set_archived(ctx, route_id, False)

    def delete(self, ctx: RequestContext, route_id: uuid.UUID) -> None:
        """Delete a route with all its days and points."""
        logger.info("Deleting route %s for user %s", route_id, ctx.user_id)
        if not self._repository.delete_route(route_id, ctx):
            raise NotFoundError(f"Route {route_id} not found")
        logger.info("Route %s deleted successfully", route_id)

    def duplicate(
        self, ctx: RequestContext, route_id: uuid.UUID, new_name: str | None = None
    ) -> Route:
        """Deep-copy a route under new identities.

        Raises:
            ValidationError: The copy's name collides with an active route
        """
        logger.info("Duplicating route %s for user %s", route_id, ctx.user_id)
        original = self._load(ctx, route_id)

        name = new_name if new_name is not None else f"{original.name}{COPY_SUFFIX}"
        self._validate_name(name)
        if self._repository.name_exists(ctx, name, archived=False):
            raise ValidationError(f"Route '{name}' already exists")

        now = self._clock()
        copy = Route(
            user_id=ctx.user_id,
            name=name,
            description=original.description,
            city_id=original.city_id,
            transport_mode=original.transport_mode,
            is_optimized=original.is_optimized,
            optimization_mode=original.optimization_mode,
            created_at=now,
            updated_at=now,
            days=[
                RouteDay(
                    day_number=day.day_number,
                    planned_start=day.planned_start,
                    planned_end=day.planned_end,
                    description=day.description,
                    points=[
                        RoutePoint(
                            order_index=p.order_index,
                            poi_id=p.poi_id,
                            snapshot=p.snapshot.model_copy() if p.snapshot else None,
                            estimated_duration_min=p.estimated_duration_min,
                            created_at=now,
                        )
                        for p in day.points
                    ],
                )
                for day in original.days
            ],
        )

        self._commit(copy)
        logger.info("Route duplicated successfully: %s", copy.route_id)
        return copy

    # Point mutations

    def add_point(
        self,
        ctx: RequestContext,
        route_id: uuid.UUID,
        poi_id: int,
        *,
        day_number: int | None = None,
        order_index: int | None = None,
        estimated_duration_min: int | None = None,
    ) -> Route:
        """Add a POI visit to a day.

        The target day is ``day_number`` (appended when it is exactly one past
        the last day), else the last day, else a new day 1. Without
        ``order_index`` the point is appended; with it, points at or after
        that index shift up by one.

        Raises:
            NotFoundError: Route, day or POI missing
            ValidationError: POI already in that day, or bad index/duration
            UpstreamUnavailableError: Catalog unreachable
        """
        logger.info("Adding POI %s to route %s for user %s", poi_id, route_id, ctx.user_id)
        route = self._load(ctx, route_id)

        if order_index is not None and order_index < 1:
            raise ValidationError("order_index must be positive")
        if estimated_duration_min is not None and estimated_duration_min < 0:
            raise ValidationError("estimated_duration_min must not be negative")

        day = self._resolve_day(route, day_number)
        if day.has_poi(poi_id):
            raise ValidationError(f"POI {poi_id} is already in day {day.day_number}")

        poi = self._gateway.get_poi(poi_id)
        if poi is None:
            raise NotFoundError(f"POI {poi_id} not found")

        point = RoutePoint(
            order_index=order_index if order_index is not None else day.next_order_index(),
            poi_id=poi_id,
            snapshot=poi.to_snapshot(),
            estimated_duration_min=estimated_duration_min,
            created_at=self._clock(),
        )
        day.insert_point(point)

        self._commit(route)
        logger.info("POI %s added to route %s successfully", poi_id, route_id)
        return route

    def remove_point(self, ctx: RequestContext, route_id: uuid.UUID, poi_id: int) -> Route:
        """Remove every occurrence of a POI across the route's days.

        Days are kept even when they become empty.

        Raises:
            NotFoundError: Route missing or POI not on the route
        """
        logger.info("Removing POI %s from route %s for user %s", poi_id, route_id, ctx.user_id)
        route = self._load(ctx, route_id)

        removed = 0
        for day in route.days:
            kept = [p for p in day.points if p.poi_id != poi_id]
            if len(kept) != len(day.points):
                removed += len(day.points) - len(kept)
                day.points = kept
                day.compact()

        if removed == 0:
            raise NotFoundError(f"POI {poi_id} is not on route {route_id}")

        self._commit(route)
        logger.info("POI %s removed from route %s (%d occurrence(s))", poi_id, route_id, removed)
        return route

    def reorder_points(
        self,
        ctx: RequestContext,
        route_id: uuid.UUID,
        point_ids: list[uuid.UUID],
        *,
        day_number: int | None = None,
    ) -> Route:
        """Reorder points within their days.

        ``point_ids`` must be exactly the point IDs of the route (or of
        ``day_number`` when given): no extras, no omissions, no duplicates.
        Each day's points are renumbered 1..n following their position in
        the list; points never move between days.

        Raises:
            ValidationError: The ID list does not match the points in scope
        """
        logger.info("Reordering points in route %s for user %s", route_id, ctx.user_id)
        route = self._load(ctx, route_id)

        if day_number is not None:
            day = route.day(day_number)
            if day is None:
                raise NotFoundError(f"Day {day_number} not found on route {route_id}")
            scope = [day]
        else:
            scope = list(route.days)

        existing = {p.point_id for day in scope for p in day.points}
        if len(point_ids) != len(set(point_ids)):
            raise ValidationError("Point list contains duplicates")
        if set(point_ids) != existing:
            raise ValidationError("Point list does not match the points on the route")

        position = {point_id: i for i, point_id in enumerate(point_ids)}
        for day in scope:
            day.points.sort(key=lambda p: position[p.point_id])
            day.renumber()

        self._commit(route)
        logger.info("Points in route %s reordered successfully", route_id)
        return route

    def optimize(
        self, ctx: RequestContext, route_id: uuid.UUID, mode: OptimizationMode | str
    ) -> Route:
        """Re-sequence every day independently and mark the route optimized.

        Fresh catalog data (coordinates, category, rating) is used when the
        catalog answers and refreshes the cached snapshots; otherwise the
        snapshots drive the optimization.
        """
        mode = coerce_mode(mode)
        logger.info("Optimizing route %s for user %s with mode: %s", route_id, ctx.user_id, mode.value)
        route = self._load(ctx, route_id)

        try:
            pois = self._fetch_pois(route)
        except UpstreamUnavailableError:
            logger.warning("POI catalog unavailable; optimizing route %s from snapshots", route_id)
            pois = {}

        for day in route.days:
            for point in day.points:
                poi = pois.get(point.poi_id)
                if poi is not None:
                    point.snapshot = poi.to_snapshot()

            stops = [
                Stop(
                    point_id=p.point_id,
                    geo=p.geo,
                    category=p.snapshot.category if p.snapshot else None,
                    rating=p.snapshot.average_rating if p.snapshot else None,
                )
                for p in day.points
            ]
            result = self._sequencer.sequence(stops, mode)
            logger.debug(
                "Day %s of route %s sequenced with %s", day.day_number, route_id, result.strategy.value
            )

            by_id = {p.point_id: p for p in day.points}
            day.points = [by_id[s.point_id] for s in result.stops]
            day.renumber()

        route.is_optimized = True
        route.optimization_mode = mode

        self._commit(route)
        logger.info("Route %s optimized successfully with mode: %s", route_id, mode.value)
        return route

    # Helpers

    def _load(self, ctx: RequestContext, route_id: uuid.UUID) -> Route:
        route = self._repository.get_route(route_id, ctx)
        if route is None:
            raise NotFoundError(f"Route {route_id} not found")
        return route

    def _commit(self, route: Route) -> None:
        """Recompute aggregates, verify invariants and persist in one transaction."""
        route.updated_at = self._clock()
        self._statistics.recompute(route)

        violations = route.invariant_violations()
        if violations:
            raise ValidationError(f"Route {route.route_id} is inconsistent: {'; '.join(violations)}")

        self._repository.save_route(route)

    def _set_archived(self, ctx: RequestContext, route_id: uuid.UUID, archived: bool) -> Route:
        route = self._load(ctx, route_id)
        if route.is_archived == archived:
            return route

        if self._repository.name_exists(
            ctx, route.name, archived=archived, exclude_route_id=route.route_id
        ):
            state = "an archived" if archived else "an active"
            raise ValidationError(f"{state.capitalize()} route named '{route.name}' already exists")

        route.is_archived = archived
        self._commit(route)
        return route

    def _resolve_day(self, route: Route, day_number: int | None) -> RouteDay:
        last = route.last_day()

        if day_number is None:
            if last is not None:
                return last
            day = self._new_day(1, None)
            route.days.append(day)
            return day

        day = route.day(day_number)
        if day is not None:
            return day

        next_number = last.day_number + 1 if last is not None else 1
        if day_number != next_number:
            raise NotFoundError(f"Day {day_number} not found on route {route.route_id}")

        day = self._new_day(day_number, None, previous=last)
        route.days.append(day)
        return day

    def _new_day(
        self, day_number: int, start_date: datetime | None, previous: RouteDay | None = None
    ) -> RouteDay:
        """Build an empty day with its planned window.

        With a trip start date, day N starts N-1 days later. A day appended
        later continues the previous day's window, or defaults to today's
        working hours when the route had no days.
        """
        day_length = timedelta(hours=self._settings.default_day_hours)
        planned_start: datetime | None = None
        planned_end: datetime | None = None

        if start_date is not None:
            planned_start = start_date + timedelta(days=day_number - 1)
            planned_end = planned_start + day_length
        elif previous is not None:
            if previous.planned_start is not None:
                planned_start = previous.planned_start + timedelta(days=1)
            if previous.planned_end is not None:
                planned_end = previous.planned_end + timedelta(days=1)
        elif day_number == 1:
            planned_start = self._clock().replace(
                hour=self._settings.default_day_start_hour, minute=0, second=0, microsecond=0
            )
            planned_end = planned_start.replace(hour=self._settings.default_day_end_hour)

        return RouteDay(
            day_number=day_number,
            planned_start=planned_start,
            planned_end=planned_end,
            description=f"Day {day_number}",
        )

    def _fetch_pois(self, route: Route) -> dict[int, Poi]:
        poi_ids = list(dict.fromkeys(p.poi_id for p in route.points()))
        if not poi_ids:
            return {}
        return {poi.id: poi for poi in self._gateway.get_pois_batch(poi_ids)}

    def _validate_name(self, name: str) -> None:
        if not name or not name.strip():
            raise ValidationError("Route name is required")
        if len(name) > self._settings.max_name_length:
            raise ValidationError(
                f"Route name must not exceed {self._settings.max_name_length} characters"
            )

    def _validate_description(self, description: str | None) -> None:
        if description is not None and len(description) > self._settings.max_description_length:
            raise ValidationError(
                f"Description must not exceed {self._settings.max_description_length} characters"
            )
