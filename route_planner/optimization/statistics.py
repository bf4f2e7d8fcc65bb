"""Per-day and route-level distance/duration aggregates."""

import logging

from route_planner.geo.distance import Metric, distance, haversine_km, path_length, travel_time
from route_planner.models.common import TransportMode
from route_planner.models.route import Route, RouteDay

logger = logging.getLogger(__name__)


class RouteStatistics:
    """Recomputes aggregates from the points' cached coordinates.

    Duration model: visit minutes of every point plus ``travel_time`` of every
    leg for the route's transport mode. Unresolved points add no distance and
    no travel time, and are logged.
    """

    def __init__(self, metric: Metric = haversine_km, default_visit_minutes: int = 60) -> None:
        self._metric = metric
        self._default_visit_minutes = default_visit_minutes

    def day_totals(self, day: RouteDay, mode: TransportMode) -> tuple[float, int]:
        """Return (distance_km, duration_min) for a day in its current order."""
        for point in day.points:
            if point.geo is None:
                logger.warning(
                    "POI %s on day %s has no coordinates; counting zero distance",
                    point.poi_id,
                    day.day_number,
                )

        total_km = path_length([p.geo for p in day.points], self._metric)
        # Minutes round up per leg, so they cannot be derived from the total
        travel_min = sum(
            travel_time(distance(prev.geo, curr.geo, self._metric), mode)
            for prev, curr in zip(day.points, day.points[1:])
        )

        visit_min = sum(
            p.estimated_duration_min
            if p.estimated_duration_min is not None
            else self._default_visit_minutes
            for p in day.points
        )

        return round(total_km, 2), visit_min + travel_min

    def recompute(self, route: Route) -> None:
        """Refresh every day's totals, then the route totals as their sum."""
        for day in route.days:
            day.distance_km, day.duration_min = self.day_totals(day, route.transport_mode)

        route.distance_km = round(sum(d.distance_km for d in route.days), 2)
        route.duration_min = sum(d.duration_min for d in route.days)
