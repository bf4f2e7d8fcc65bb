"""SQL implementation of the route repository."""

import uuid

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from route_planner.db.context import RequestContext
from route_planner.db.models import Route as RouteDB
from route_planner.db.models import RouteDay as RouteDayDB
from route_planner.db.models import RoutePoint as RoutePointDB
from route_planner.db.repositories import RouteSummary
from route_planner.errors import ConcurrencyConflictError
from route_planner.models.common import Geo, OptimizationMode, TransportMode
from route_planner.models.route import PoiSnapshot, Route, RouteDay, RoutePoint


def _point_to_domain(row: RoutePointDB) -> RoutePoint:
    snapshot = None
    if row.poi_name is not None:
        geo = None
        if row.poi_lat is not None and row.poi_lon is not None:
            geo = Geo(lat=row.poi_lat, lon=row.poi_lon)
        snapshot = PoiSnapshot(
            name=row.poi_name,
            address=row.poi_address,
            geo=geo,
            category=row.poi_category,
            average_rating=row.poi_rating,
        )

    return RoutePoint(
        point_id=row.point_id,
        order_index=row.order_index,
        poi_id=row.poi_id,
        snapshot=snapshot,
        estimated_duration_min=row.estimated_duration_min,
        created_at=row.created_at,
    )


def _route_to_domain(row: RouteDB) -> Route:
    days = [
        RouteDay(
            day_id=day.day_id,
            day_number=day.day_number,
            planned_start=day.planned_start,
            planned_end=day.planned_end,
            description=day.description,
            distance_km=day.distance_km,
            duration_min=day.duration_min,
            points=[_point_to_domain(p) for p in day.points],
        )
        for day in row.days
    ]

    return Route(
        route_id=row.route_id,
        user_id=row.user_id,
        name=row.name,
        description=row.description,
        city_id=row.city_id,
        transport_mode=TransportMode(row.transport_mode),
        is_archived=row.is_archived,
        is_optimized=row.is_optimized,
        optimization_mode=OptimizationMode(row.optimization_mode) if row.optimization_mode else None,
        distance_km=row.distance_km,
        duration_min=row.duration_min,
        days=days,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _route_to_row(route: Route) -> RouteDB:
    row = RouteDB(
        route_id=route.route_id,
        user_id=route.user_id,
        name=route.name,
        description=route.description,
        city_id=route.city_id,
        transport_mode=route.transport_mode.value,
        is_archived=route.is_archived,
        is_optimized=route.is_optimized,
        optimization_mode=route.optimization_mode.value if route.optimization_mode else None,
        distance_km=route.distance_km,
        duration_min=route.duration_min,
        created_at=route.created_at,
        updated_at=route.updated_at,
    )

    for day in route.days:
        day_row = RouteDayDB(
            day_id=day.day_id,
            day_number=day.day_number,
            planned_start=day.planned_start,
            planned_end=day.planned_end,
            description=day.description,
            distance_km=day.distance_km,
            duration_min=day.duration_min,
        )
        for point in day.points:
            snapshot = point.snapshot
            day_row.points.append(
                RoutePointDB(
                    point_id=point.point_id,
                    order_index=point.order_index,
                    poi_id=point.poi_id,
                    estimated_duration_min=point.estimated_duration_min,
                    poi_name=snapshot.name if snapshot else None,
                    poi_address=snapshot.address if snapshot else None,
                    poi_lat=snapshot.geo.lat if snapshot and snapshot.geo else None,
                    poi_lon=snapshot.geo.lon if snapshot and snapshot.geo else None,
                    poi_category=snapshot.category if snapshot else None,
                    poi_rating=snapshot.average_rating if snapshot else None,
                    created_at=point.created_at,
                )
            )
        row.days.append(day_row)

    return row


class SqlRouteRepository:
    """SQL implementation of RouteRepository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _query_routes(self, ctx: RequestContext) -> Select[tuple[RouteDB]]:
        """Select routes with owner scoping enforced."""
        return select(RouteDB).where(RouteDB.user_id == ctx.user_id)

    def get_route(self, route_id: uuid.UUID, ctx: RequestContext) -> Route | None:
        """Get route by ID."""
        stmt = (
            self._query_routes(ctx)
            .where(RouteDB.route_id == route_id)
            .options(selectinload(RouteDB.days).selectinload(RouteDayDB.points))
        )
        row = self._session.execute(stmt).scalar_one_or_none()

        if row is None:
            return None

        return _route_to_domain(row)

    def list_routes(
        self, ctx: RequestContext, *, archived: bool, city_id: int | None = None
    ) -> list[RouteSummary]:
        """List routes for user."""
        stmt = (
            self._query_routes(ctx)
            .where(RouteDB.is_archived == archived)
            .options(selectinload(RouteDB.days).selectinload(RouteDayDB.points))
            .order_by(RouteDB.created_at.desc())
        )
        if city_id is not None:
            stmt = stmt.where(RouteDB.city_id == city_id)

        rows = self._session.execute(stmt).scalars().all()
        return [RouteSummary.from_route(_route_to_domain(row)) for row in rows]

    def count_routes(self, ctx: RequestContext, *, archived: bool = False) -> int:
        """Count routes for user."""
        stmt = select(func.count()).select_from(RouteDB).where(
            RouteDB.user_id == ctx.user_id, RouteDB.is_archived == archived
        )
        return int(self._session.execute(stmt).scalar_one())

    def name_exists(
        self,
        ctx: RequestContext,
        name: str,
        *,
        archived: bool,
        exclude_route_id: uuid.UUID | None = None,
    ) -> bool:
        """Check whether the name is taken."""
        stmt = self._query_routes(ctx).where(
            RouteDB.name == name, RouteDB.is_archived == archived
        )
        if exclude_route_id is not None:
            stmt = stmt.where(RouteDB.route_id != exclude_route_id)

        return self._session.execute(stmt.limit(1)).first() is not None

    def save_route(self, route: Route) -> None:
        """Replace the stored aggregate in a single transaction."""
        try:
            existing = self._session.get(RouteDB, route.route_id)
            if existing is not None:
                # Delete first so day/point unique constraints never see both versions
                self._session.delete(existing)
                self._session.flush()

            self._session.add(_route_to_row(route))
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            raise ConcurrencyConflictError(
                f"Route '{route.name}' conflicts with a concurrent write"
            ) from e
        except Exception:
            self._session.rollback()
            raise

    def delete_route(self, route_id: uuid.UUID, ctx: RequestContext) -> bool:
        """Delete route; days and points follow through the ORM cascade."""
        row = self._session.execute(
            self._query_routes(ctx).where(RouteDB.route_id == route_id)
        ).scalar_one_or_none()

        if row is None:
            return False

        self._session.delete(row)
        self._session.commit()
        return True
