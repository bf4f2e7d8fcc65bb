"""Route aggregate: a Route owns ordered Days, a Day owns ordered Points.

Children carry no back-references; "which day holds this point" is answered
by positional lookup on the owning Route.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from route_planner.models.common import Geo, OptimizationMode, TransportMode


class PoiSnapshot(BaseModel):
    """Display copy of catalog data taken when a point is added or refreshed."""

    name: str
    address: str | None = None
    geo: Geo | None = None
    category: str | None = None
    average_rating: float | None = None


class RoutePoint(BaseModel):
    """One scheduled visit to a POI within a day."""

    point_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    order_index: int = Field(..., ge=1)
    poi_id: int
    snapshot: PoiSnapshot | None = None
    estimated_duration_min: int | None = Field(None, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def geo(self) -> Geo | None:
        return self.snapshot.geo if self.snapshot else None


class RouteDay(BaseModel):
    """Ordered container of visits. ``points`` is always kept in order_index order."""

    day_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    day_number: int = Field(..., ge=1)
    planned_start: datetime | None = None
    planned_end: datetime | None = None
    description: str | None = None
    distance_km: float = 0.0
    duration_min: int = 0
    points: list[RoutePoint] = Field(default_factory=list)

    def has_poi(self, poi_id: int) -> bool:
        return any(p.poi_id == poi_id for p in self.points)

    def next_order_index(self) -> int:
        return max((p.order_index for p in self.points), default=0) + 1

    def insert_point(self, point: RoutePoint) -> None:
        """Insert at ``point.order_index``, shifting points at or after it up by one.

        An index past the end is clamped so the sequence stays dense.
        """
        target = min(point.order_index, self.next_order_index())
        for existing in self.points:
            if existing.order_index >= target:
                existing.order_index += 1
        point.order_index = target
        self.points.append(point)
        self.points.sort(key=lambda p: p.order_index)

    def renumber(self) -> None:
        """Assign 1..n following the current list order."""
        for index, point in enumerate(self.points, start=1):
            point.order_index = index

    def compact(self) -> None:
        """Close gaps left by removals, preserving relative order."""
        self.points.sort(key=lambda p: p.order_index)
        self.renumber()


class Route(BaseModel):
    """Top-level multi-day trip plan."""

    route_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: uuid.UUID
    name: str
    description: str | None = None
    city_id: int
    transport_mode: TransportMode = TransportMode.walk
    is_archived: bool = False
    is_optimized: bool = False
    optimization_mode: OptimizationMode | None = None
    distance_km: float = 0.0
    duration_min: int = 0
    days: list[RouteDay] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def day(self, day_number: int) -> RouteDay | None:
        for day in self.days:
            if day.day_number == day_number:
                return day
        return None

    def last_day(self) -> RouteDay | None:
        if not self.days:
            return None
        return max(self.days, key=lambda d: d.day_number)

    def points(self) -> list[RoutePoint]:
        """All points of the route, day by day in day_number order."""
        return [p for day in sorted(self.days, key=lambda d: d.day_number) for p in day.points]

    def find_point(self, point_id: uuid.UUID) -> tuple[RouteDay, RoutePoint] | None:
        for day in self.days:
            for point in day.points:
                if point.point_id == point_id:
                    return day, point
        return None

    def invariant_violations(self) -> list[str]:
        """Describe every broken structural invariant (empty when consistent)."""
        violations: list[str] = []

        day_numbers = [d.day_number for d in self.days]
        if len(day_numbers) != len(set(day_numbers)):
            violations.append("duplicate day_number")

        for day in self.days:
            indices = [p.order_index for p in day.points]
            if sorted(indices) != list(range(1, len(indices) + 1)):
                violations.append(f"day {day.day_number}: order_index not dense 1..{len(indices)}")
            poi_ids = [p.poi_id for p in day.points]
            if len(poi_ids) != len(set(poi_ids)):
                violations.append(f"day {day.day_number}: duplicate poi_id")

        total_distance = round(sum(d.distance_km for d in self.days), 2)
        total_duration = sum(d.duration_min for d in self.days)
        if abs(total_distance - self.distance_km) > 1e-6 or total_duration != self.duration_min:
            violations.append("route aggregates do not match day totals")

        return violations
