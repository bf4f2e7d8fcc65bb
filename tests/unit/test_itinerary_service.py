"""Unit tests for the itinerary mutation and statistics engine.

Tests cover:
1. Route lifecycle (create, update, archive, duplicate, delete)
2. Point mutations keep order_index dense and aggregates fresh
3. Reorder and optimize semantics
4. Atomicity: rejected operations leave stored state untouched
5. Behaviour while the POI catalog is unavailable
"""

import uuid
from datetime import datetime

import pytest

from route_planner.adapters.poi_gateway import InMemoryPoiGateway
from route_planner.config import Settings
from route_planner.db.context import RequestContext
from route_planner.db.inmemory import InMemoryRouteRepository
from route_planner.errors import (
    ConcurrencyConflictError,
    NotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from route_planner.models import OptimizationMode, Route, TransportMode
from route_planner.services.itinerary import ItineraryService
from tests.factories import make_poi


def assert_dense(route: Route) -> None:
    for day in route.days:
        assert [p.order_index for p in day.points] == list(range(1, len(day.points) + 1))


def poi_ids(route: Route, day_number: int = 1) -> list[int]:
    day = route.day(day_number)
    assert day is not None
    return [p.poi_id for p in day.points]


@pytest.fixture
def route(service: ItineraryService, ctx: RequestContext) -> Route:
    return service.create_itinerary(ctx, name="Paris", city_id=1)


@pytest.fixture
def abc_route(service: ItineraryService, ctx: RequestContext, route: Route) -> Route:
    for poi_id in (1, 2, 3):
        service.add_point(ctx, route.route_id, poi_id)
    return service.get_itinerary(ctx, route.route_id)


class TestCreate:
    def test_three_days_numbered_and_empty(self, service: ItineraryService, ctx: RequestContext) -> None:
        route = service.create_itinerary(ctx, name="Rome", city_id=2, days_count=3)

        assert [d.day_number for d in route.days] == [1, 2, 3]
        assert all(d.points == [] for d in route.days)
        assert route.distance_km == 0
        assert route.duration_min == 0
        assert [d.description for d in route.days] == ["Day 1", "Day 2", "Day 3"]

    def test_start_date_sets_day_windows(self, service: ItineraryService, ctx: RequestContext) -> None:
        start = datetime(2025, 7, 1, 9, 0)

        route = service.create_itinerary(ctx, name="Rome", city_id=2, days_count=2, start_date=start)

        assert route.days[0].planned_start == start
        assert route.days[0].planned_end == datetime(2025, 7, 1, 17, 0)
        assert route.days[1].planned_start == datetime(2025, 7, 2, 9, 0)

    @pytest.mark.parametrize("days_count", [0, 31])
    def test_day_count_out_of_range(self, service: ItineraryService, ctx: RequestContext, days_count: int) -> None:
        with pytest.raises(ValidationError, match="Day count"):
            service.create_itinerary(ctx, name="Rome", city_id=2, days_count=days_count)

    def test_duplicate_active_name_rejected(self, service: ItineraryService, ctx: RequestContext, route: Route) -> None:
        with pytest.raises(ValidationError, match="already exists"):
            service.create_itinerary(ctx, name="Paris", city_id=1)

    def test_same_name_allowed_for_other_user(self, service: ItineraryService, route: Route) -> None:
        other = RequestContext(user_id=uuid.uuid4())
        assert service.create_itinerary(other, name="Paris", city_id=1).name == "Paris"

    @pytest.mark.parametrize("name", ["", "   ", "x" * 256])
    def test_invalid_name(self, service: ItineraryService, ctx: RequestContext, name: str) -> None:
        with pytest.raises(ValidationError):
            service.create_itinerary(ctx, name=name, city_id=1)

    def test_does_not_need_poi_catalog(
        self, service: ItineraryService, ctx: RequestContext, gateway: InMemoryPoiGateway
    ) -> None:
        gateway.available = False
        assert service.create_itinerary(ctx, name="Offline", city_id=1).days

    def test_storage_conflict_surfaces_as_concurrency_conflict(
        self, service: ItineraryService, ctx: RequestContext, repository: InMemoryRouteRepository
    ) -> None:
        # Pre-check passes but the storage constraint rejects the write
        repository.name_exists = lambda *args, **kwargs: False  # type: ignore[method-assign]
        service.create_itinerary(ctx, name="Race", city_id=1)

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            service.create_itinerary(ctx, name="Race", city_id=1)
        assert exc_info.value.retryable is True


class TestAddPoint:
    def test_appends_to_last_day_with_dense_indices(self, abc_route: Route) -> None:
        assert poi_ids(abc_route) == [1, 2, 3]
        assert_dense(abc_route)

    def test_insert_at_index_shifts_following_points(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        route = service.add_point(ctx, abc_route.route_id, 4, order_index=2)

        assert poi_ids(route) == [1, 4, 2, 3]
        assert_dense(route)

    def test_stores_snapshot_and_recomputes(
        self, service: ItineraryService, ctx: RequestContext, route: Route
    ) -> None:
        service.add_point(ctx, route.route_id, 1, estimated_duration_min=30)
        updated = service.add_point(ctx, route.route_id, 2, estimated_duration_min=30)

        second = updated.days[0].points[1]
        assert second.snapshot is not None
        assert second.snapshot.name == "B"
        assert second.snapshot.average_rating == 3.0
        # 3 km walking = 36 min
        assert updated.distance_km == 3.0
        assert updated.duration_min == 30 + 30 + 36

    def test_duplicate_poi_in_same_day_rejected(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        with pytest.raises(ValidationError, match="already in day 1"):
            service.add_point(ctx, abc_route.route_id, 2)

    def test_same_poi_allowed_on_another_day(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        route = service.add_point(ctx, abc_route.route_id, 1, day_number=2)

        assert [d.day_number for d in route.days] == [1, 2]
        assert poi_ids(route, 2) == [1]

    def test_appended_day_continues_previous_window(
        self, service: ItineraryService, ctx: RequestContext, route: Route
    ) -> None:
        updated = service.add_point(ctx, route.route_id, 1, day_number=2)

        first, second = updated.days
        assert first.planned_start == datetime(2025, 6, 1, 9, 0)
        assert first.planned_end == datetime(2025, 6, 1, 18, 0)
        assert second.planned_start == datetime(2025, 6, 2, 9, 0)
        assert second.description == "Day 2"

    def test_first_day_window_follows_configured_hours(
        self, repository: InMemoryRouteRepository, gateway: InMemoryPoiGateway, ctx: RequestContext
    ) -> None:
        settings = Settings(database_url="sqlite://", default_day_start_hour=8, default_day_end_hour=20)
        service = ItineraryService(
            repository, gateway, settings=settings, clock=lambda: datetime(2025, 6, 1, 7, 15)
        )

        route = service.create_itinerary(ctx, name="Long days", city_id=1)

        day = route.days[0]
        assert day.planned_start == datetime(2025, 6, 1, 8, 0)
        assert day.planned_end == datetime(2025, 6, 1, 20, 0)

    def test_unknown_day_beyond_next_rejected(
        self, service: ItineraryService, ctx: RequestContext, route: Route
    ) -> None:
        with pytest.raises(NotFoundError, match="Day 5"):
            service.add_point(ctx, route.route_id, 1, day_number=5)

    def test_unknown_poi(self, service: ItineraryService, ctx: RequestContext, route: Route) -> None:
        with pytest.raises(NotFoundError, match="POI 999"):
            service.add_point(ctx, route.route_id, 999)

    def test_unknown_route(self, service: ItineraryService, ctx: RequestContext) -> None:
        with pytest.raises(NotFoundError):
            service.add_point(ctx, uuid.uuid4(), 1)

    def test_other_users_route_is_not_found(self, service: ItineraryService, route: Route) -> None:
        with pytest.raises(NotFoundError):
            service.add_point(RequestContext(user_id=uuid.uuid4()), route.route_id, 1)

    def test_catalog_down_surfaces_and_applies_nothing(
        self,
        service: ItineraryService,
        ctx: RequestContext,
        gateway: InMemoryPoiGateway,
        abc_route: Route,
    ) -> None:
        gateway.available = False

        with pytest.raises(UpstreamUnavailableError):
            service.add_point(ctx, abc_route.route_id, 4)

        assert service.get_itinerary(ctx, abc_route.route_id) == abc_route


class TestRemovePoint:
    def test_removes_and_compacts(self, service: ItineraryService, ctx: RequestContext, abc_route: Route) -> None:
        route = service.remove_point(ctx, abc_route.route_id, 2)

        assert poi_ids(route) == [1, 3]
        assert_dense(route)
        assert route.distance_km == 4.0

    def test_removes_every_occurrence(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        service.add_point(ctx, abc_route.route_id, 2, day_number=2)

        route = service.remove_point(ctx, abc_route.route_id, 2)

        assert poi_ids(route, 1) == [1, 3]
        assert poi_ids(route, 2) == []

    def test_removing_only_point_keeps_empty_day(
        self, service: ItineraryService, ctx: RequestContext, route: Route
    ) -> None:
        service.add_point(ctx, route.route_id, 1)

        service.remove_point(ctx, route.route_id, 1)
        reloaded = service.get_itinerary(ctx, route.route_id)

        assert len(reloaded.days) == 1
        assert reloaded.days[0].points == []
        assert reloaded.duration_min == 0

    def test_missing_poi(self, service: ItineraryService, ctx: RequestContext, abc_route: Route) -> None:
        with pytest.raises(NotFoundError):
            service.remove_point(ctx, abc_route.route_id, 4)

    def test_works_without_catalog(
        self,
        service: ItineraryService,
        ctx: RequestContext,
        gateway: InMemoryPoiGateway,
        abc_route: Route,
    ) -> None:
        gateway.available = False
        assert poi_ids(service.remove_point(ctx, abc_route.route_id, 1)) == [2, 3]


class TestReorder:
    def test_assigns_order_from_list(self, service: ItineraryService, ctx: RequestContext, abc_route: Route) -> None:
        a, b, c = abc_route.days[0].points

        route = service.reorder_points(ctx, abc_route.route_id, [c.point_id, a.point_id, b.point_id])

        assert poi_ids(route) == [3, 1, 2]
        assert_dense(route)
        # C -> A -> B = 4 + 3
        assert route.distance_km == 7.0

    def test_points_stay_in_their_day(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        route = service.add_point(ctx, abc_route.route_id, 4, day_number=2)
        ids = [p.point_id for p in route.points()]

        reordered = service.reorder_points(ctx, route.route_id, list(reversed(ids)))

        assert poi_ids(reordered, 1) == [3, 2, 1]
        assert poi_ids(reordered, 2) == [4]
        assert_dense(reordered)

    def test_scoped_to_one_day(self, service: ItineraryService, ctx: RequestContext, abc_route: Route) -> None:
        service.add_point(ctx, abc_route.route_id, 4, day_number=2)
        a, b, c = abc_route.days[0].points

        route = service.reorder_points(
            ctx, abc_route.route_id, [b.point_id, c.point_id, a.point_id], day_number=1
        )

        assert poi_ids(route, 1) == [2, 3, 1]
        assert poi_ids(route, 2) == [4]

    @pytest.mark.parametrize("case", ["missing", "extra", "duplicate"])
    def test_invalid_set_rejected_and_state_unchanged(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route, case: str
    ) -> None:
        ids = [p.point_id for p in abc_route.days[0].points]
        if case == "missing":
            ids = ids[:2]
        elif case == "extra":
            ids = [*ids, uuid.uuid4()]
        else:
            ids = [ids[0], *ids]

        with pytest.raises(ValidationError):
            service.reorder_points(ctx, abc_route.route_id, ids)

        assert service.get_itinerary(ctx, abc_route.route_id) == abc_route

    def test_works_without_catalog(
        self,
        service: ItineraryService,
        ctx: RequestContext,
        gateway: InMemoryPoiGateway,
        abc_route: Route,
    ) -> None:
        gateway.available = False
        ids = [p.point_id for p in reversed(abc_route.days[0].points)]

        assert poi_ids(service.reorder_points(ctx, abc_route.route_id, ids)) == [3, 2, 1]


class TestOptimize:
    def test_distance_mode_scenario(self, service: ItineraryService, ctx: RequestContext, abc_route: Route) -> None:
        route = service.optimize(ctx, abc_route.route_id, OptimizationMode.distance)

        assert poi_ids(route) == [2, 1, 3]
        assert route.distance_km == 7.0
        assert route.is_optimized is True
        assert route.optimization_mode == OptimizationMode.distance
        assert_dense(route)

    def test_rating_mode(self, service: ItineraryService, ctx: RequestContext, abc_route: Route) -> None:
        route = service.optimize(ctx, abc_route.route_id, "RATING")
        # C 5.0, A 4.0, B 3.0
        assert poi_ids(route) == [3, 1, 2]

    def test_unknown_mode_uses_time(self, service: ItineraryService, ctx: RequestContext, abc_route: Route) -> None:
        route = service.optimize(ctx, abc_route.route_id, "teleport")

        assert route.optimization_mode == OptimizationMode.time
        assert poi_ids(route) == [1, 2, 3]

    def test_each_day_optimized_independently(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        service.add_point(ctx, abc_route.route_id, 4, day_number=2)
        service.add_point(ctx, abc_route.route_id, 1, day_number=2)

        route = service.optimize(ctx, abc_route.route_id, OptimizationMode.scenic)

        # B park 16, then A museum 13 and C monument 13 in their original order
        assert poi_ids(route, 1) == [2, 1, 3]
        # D viewpoint 17, A museum 13
        assert poi_ids(route, 2) == [4, 1]

    def test_refreshes_snapshots_from_catalog(
        self,
        service: ItineraryService,
        ctx: RequestContext,
        gateway: InMemoryPoiGateway,
        abc_route: Route,
    ) -> None:
        gateway.add(make_poi(2, 0.0, 3.0, name="B renamed", category="park", rating=1.0))

        route = service.optimize(ctx, abc_route.route_id, OptimizationMode.rating)

        assert poi_ids(route) == [3, 1, 2]
        assert route.days[0].points[2].snapshot.name == "B renamed"  # type: ignore[union-attr]

    def test_falls_back_to_snapshots_when_catalog_down(
        self,
        service: ItineraryService,
        ctx: RequestContext,
        gateway: InMemoryPoiGateway,
        abc_route: Route,
    ) -> None:
        gateway.available = False

        route = service.optimize(ctx, abc_route.route_id, OptimizationMode.distance)

        assert poi_ids(route) == [2, 1, 3]

    def test_unlocated_point_sorted_last_and_counted_zero(
        self, service: ItineraryService, ctx: RequestContext, route: Route
    ) -> None:
        for poi_id in (5, 1, 2):
            service.add_point(ctx, route.route_id, poi_id)

        optimized = service.optimize(ctx, route.route_id, OptimizationMode.time)

        assert poi_ids(optimized) == [1, 2, 5]
        assert optimized.distance_km == 3.0


class TestDuplicate:
    def test_copy_has_same_structure_and_new_identities(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        copy = service.duplicate(ctx, abc_route.route_id)

        assert copy.name == "Paris (copy)"
        assert copy.route_id != abc_route.route_id
        assert poi_ids(copy) == poi_ids(abc_route)
        assert [p.order_index for p in copy.days[0].points] == [1, 2, 3]
        assert copy.distance_km == abc_route.distance_km
        original_ids = {p.point_id for p in abc_route.points()} | {d.day_id for d in abc_route.days}
        copy_ids = {p.point_id for p in copy.points()} | {d.day_id for d in copy.days}
        assert original_ids.isdisjoint(copy_ids)

    def test_mutating_copy_leaves_original(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        copy = service.duplicate(ctx, abc_route.route_id, new_name="Paris v2")

        service.remove_point(ctx, copy.route_id, 1)

        assert poi_ids(service.get_itinerary(ctx, abc_route.route_id)) == [1, 2, 3]

    def test_name_collision(self, service: ItineraryService, ctx: RequestContext, abc_route: Route) -> None:
        service.duplicate(ctx, abc_route.route_id)

        with pytest.raises(ValidationError):
            service.duplicate(ctx, abc_route.route_id)


class TestArchiveAndDelete:
    def test_archive_hides_from_active_listing(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        archived = service.archive(ctx, abc_route.route_id)

        assert archived.is_archived is True
        assert poi_ids(archived) == [1, 2, 3]
        assert service.list_itineraries(ctx) == []
        assert [s.route_id for s in service.list_itineraries(ctx, archived=True)] == [abc_route.route_id]
        assert service.count_itineraries(ctx) == 0
        assert service.is_name_available(ctx, "Paris")

    def test_unarchive_blocked_by_active_namesake(
        self, service: ItineraryService, ctx: RequestContext, route: Route
    ) -> None:
        service.archive(ctx, route.route_id)
        service.create_itinerary(ctx, name="Paris", city_id=1)

        with pytest.raises(ValidationError):
            service.unarchive(ctx, route.route_id)

    def test_unarchive(self, service: ItineraryService, ctx: RequestContext, route: Route) -> None:
        service.archive(ctx, route.route_id)
        assert service.unarchive(ctx, route.route_id).is_archived is False

    def test_delete(self, service: ItineraryService, ctx: RequestContext, abc_route: Route) -> None:
        service.delete(ctx, abc_route.route_id)

        with pytest.raises(NotFoundError):
            service.get_itinerary(ctx, abc_route.route_id)
        with pytest.raises(NotFoundError):
            service.delete(ctx, abc_route.route_id)


class TestUpdateAndListing:
    def test_update_metadata_and_reprice(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        route = service.update_itinerary(
            ctx, abc_route.route_id, name="Paris by car", transport_mode=TransportMode.car
        )

        assert route.name == "Paris by car"
        assert route.duration_min < abc_route.duration_min

    def test_rename_to_taken_name(self, service: ItineraryService, ctx: RequestContext, route: Route) -> None:
        other = service.create_itinerary(ctx, name="Lyon", city_id=3)

        with pytest.raises(ValidationError):
            service.update_itinerary(ctx, other.route_id, name="Paris")

    def test_description_too_long(self, service: ItineraryService, ctx: RequestContext, route: Route) -> None:
        with pytest.raises(ValidationError):
            service.update_itinerary(ctx, route.route_id, description="x" * 501)

    def test_list_by_city(self, service: ItineraryService, ctx: RequestContext, route: Route) -> None:
        service.create_itinerary(ctx, name="Lyon", city_id=3)

        assert [s.name for s in service.list_itineraries(ctx, city_id=3)] == ["Lyon"]
        assert service.count_itineraries(ctx) == 2
        assert not service.is_name_available(ctx, "Lyon")


class TestEnrich:
    def test_pairs_points_with_fresh_catalog_data(
        self, service: ItineraryService, ctx: RequestContext, abc_route: Route
    ) -> None:
        enriched = service.enrich(abc_route)

        assert enriched.from_snapshot is False
        assert [ep.poi.name for ep in enriched.days[0].points] == ["A", "B", "C"]  # type: ignore[union-attr]

    def test_falls_back_to_snapshots(
        self,
        service: ItineraryService,
        ctx: RequestContext,
        gateway: InMemoryPoiGateway,
        abc_route: Route,
    ) -> None:
        gateway.available = False

        enriched = service.enrich(abc_route)

        assert enriched.from_snapshot is True
        assert all(ep.poi is None for ep in enriched.days[0].points)
        assert [ep.display.name for ep in enriched.days[0].points] == ["A", "B", "C"]  # type: ignore[union-attr]
