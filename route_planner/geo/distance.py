"""Great-circle distance and travel-time estimation.

Every distance figure in the service (optimizer and statistics alike) goes
through this module so the two never disagree.
"""

import math
from collections.abc import Callable, Sequence

from route_planner.models.common import Geo, TransportMode

EARTH_RADIUS_KM = 6371.0

# Average door-to-door speeds in km/h
SPEED_KMH: dict[TransportMode, float] = {
    TransportMode.walk: 5.0,
    TransportMode.car: 40.0,
    TransportMode.public_transport: 25.0,
    TransportMode.mixed: 15.0,
}

Metric = Callable[[Geo, Geo], float]


def haversine_km(a: Geo, b: Geo) -> float:
    """Great-circle distance in kilometres between two WGS84 points."""
    lat1 = math.radians(a.lat)
    lon1 = math.radians(a.lon)
    lat2 = math.radians(b.lat)
    lon2 = math.radians(b.lon)

    d_lat = lat2 - lat1
    d_lon = lon2 - lon1

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_KM * c


def distance(a: Geo | None, b: Geo | None, metric: Metric = haversine_km) -> float:
    """Distance between two optional points; 0.0 when either is unresolved."""
    if a is None or b is None:
        return 0.0
    return metric(a, b)


def travel_time(distance_km: float, mode: TransportMode) -> int:
    """Expected minutes to cover ``distance_km`` with ``mode``, rounded up."""
    speed = SPEED_KMH.get(mode, SPEED_KMH[TransportMode.walk])
    return math.ceil(distance_km / speed * 60)


def travel_info(
    a: Geo | None, b: Geo | None, mode: TransportMode, metric: Metric = haversine_km
) -> tuple[float, int]:
    """Distance (km, 2 decimals) and travel minutes for a single leg."""
    km = distance(a, b, metric)
    return round(km, 2), travel_time(km, mode)


def path_length(points: Sequence[Geo | None], metric: Metric = haversine_km) -> float:
    """Sum of consecutive leg lengths along an open path.

    Legs touching an unresolved point contribute nothing.
    """
    total = 0.0
    for prev, curr in zip(points, points[1:]):
        total += distance(prev, curr, metric)
    return total


def nearest(
    reference: Geo, candidates: Sequence[Geo | None], metric: Metric = haversine_km
) -> tuple[int, float] | None:
    """Linear scan for the closest candidate.

    Returns:
        (index into candidates, distance) or None when no candidate is resolved.
        Ties keep the earliest candidate.
    """
    best: tuple[int, float] | None = None
    for index, candidate in enumerate(candidates):
        if candidate is None:
            continue
        d = metric(reference, candidate)
        if best is None or d < best[1]:
            best = (index, d)
    return best


def is_within_radius(a: Geo, b: Geo, radius_km: float, metric: Metric = haversine_km) -> bool:
    return metric(a, b) <= radius_km
