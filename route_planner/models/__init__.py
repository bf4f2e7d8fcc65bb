"""Models package - re-exports for convenience."""

from route_planner.models.common import Geo, OptimizationMode, TransportMode
from route_planner.models.poi import EnrichedDay, EnrichedPoint, EnrichedRoute, Poi
from route_planner.models.route import PoiSnapshot, Route, RouteDay, RoutePoint

__all__ = [
    # Common
    "Geo",
    "TransportMode",
    "OptimizationMode",
    # Route aggregate
    "Route",
    "RouteDay",
    "RoutePoint",
    "PoiSnapshot",
    # Catalog
    "Poi",
    "EnrichedPoint",
    "EnrichedDay",
    "EnrichedRoute",
]
