"""Unit tests for route statistics recomputation."""

import logging
import uuid

import pytest

from route_planner.geo.distance import path_length
from route_planner.models import Geo, PoiSnapshot, Route, RouteDay, RoutePoint, TransportMode
from route_planner.optimization.statistics import RouteStatistics
from tests.factories import flat_metric


def point(order_index: int, geo: Geo | None, duration: int | None = None) -> RoutePoint:
    return RoutePoint(
        order_index=order_index,
        poi_id=order_index,
        snapshot=PoiSnapshot(name="p", geo=geo),
        estimated_duration_min=duration,
    )


@pytest.fixture
def statistics() -> RouteStatistics:
    return RouteStatistics(metric=flat_metric, default_visit_minutes=60)


def test_day_totals_sum_legs_visits_and_travel(statistics: RouteStatistics) -> None:
    day = RouteDay(
        day_number=1,
        points=[
            point(1, Geo(lat=0, lon=0), duration=30),
            point(2, Geo(lat=0, lon=3)),
            point(3, Geo(lat=4, lon=0), duration=45),
        ],
    )

    distance_km, duration_min = statistics.day_totals(day, TransportMode.walk)

    # 3 km = 36 min, 5 km = 60 min walking; visits 30 + 60 + 45
    assert distance_km == 8.0
    assert duration_min == 36 + 60 + 30 + 60 + 45


def test_day_distance_matches_optimizer_path_length(statistics: RouteStatistics) -> None:
    geos = [Geo(lat=0.5, lon=1.25), Geo(lat=2, lon=-1), None, Geo(lat=-3.5, lon=0.75)]
    day = RouteDay(day_number=1, points=[point(i, g) for i, g in enumerate(geos, start=1)])

    distance_km, _ = statistics.day_totals(day, TransportMode.walk)

    assert distance_km == round(path_length(geos, flat_metric), 2)


def test_unresolved_point_contributes_zero_and_logs(
    statistics: RouteStatistics, caplog: pytest.LogCaptureFixture
) -> None:
    day = RouteDay(
        day_number=1,
        points=[point(1, Geo(lat=0, lon=0)), point(2, None), point(3, Geo(lat=0, lon=3))],
    )

    with caplog.at_level(logging.WARNING):
        distance_km, duration_min = statistics.day_totals(day, TransportMode.car)

    assert distance_km == 0.0
    assert duration_min == 180
    assert "no coordinates" in caplog.text


def test_recompute_route_is_sum_of_days(statistics: RouteStatistics) -> None:
    route = Route(
        user_id=uuid.uuid4(),
        name="Trip",
        city_id=1,
        transport_mode=TransportMode.car,
        days=[
            RouteDay(day_number=1, points=[point(1, Geo(lat=0, lon=0)), point(2, Geo(lat=0, lon=3))]),
            RouteDay(day_number=2, points=[point(1, Geo(lat=0, lon=0)), point(2, Geo(lat=4, lon=0))]),
            RouteDay(day_number=3),
        ],
    )

    statistics.recompute(route)

    assert [d.distance_km for d in route.days] == [3.0, 4.0, 0.0]
    # Car: 3 km = 5 min, 4 km = 6 min
    assert [d.duration_min for d in route.days] == [125, 126, 0]
    assert route.distance_km == 7.0
    assert route.duration_min == 251
    assert route.invariant_violations() == []
