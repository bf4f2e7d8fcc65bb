"""Catalog-backed planning helpers: POI suggestions and nearest-POI search."""

import logging

from route_planner.adapters.poi_gateway import PoiGateway
from route_planner.geo.distance import Metric, haversine_km, nearest
from route_planner.models.common import Geo
from route_planner.models.poi import Poi

logger = logging.getLogger(__name__)


class PlanningService:
    """Suggests POIs for a city and finds the closest POI to a location."""

    def __init__(
        self, gateway: PoiGateway, metric: Metric = haversine_km, fetch_limit: int = 100
    ) -> None:
        self._gateway = gateway
        self._metric = metric
        self._fetch_limit = fetch_limit

    def suggest_pois(
        self,
        city_id: int,
        *,
        category: str | None = None,
        min_rating: float = 0.0,
        limit: int = 10,
    ) -> list[Poi]:
        """Top-rated verified, open POIs of a city.

        Results are sorted by descending rating; ties keep catalog order.
        """
        logger.info("Suggesting POIs for city %s (category=%s, min_rating=%s)", city_id, category, min_rating)
        candidates = self._gateway.search_by_city(city_id, category=category, limit=self._fetch_limit)

        eligible = [
            poi
            for poi in candidates
            if poi.verified and not poi.closed and (poi.average_rating or 0.0) >= min_rating
        ]
        eligible.sort(key=lambda p: p.average_rating or 0.0, reverse=True)
        return eligible[:limit]

    def find_nearest_poi(
        self,
        location: Geo,
        *,
        category: str | None = None,
        radius_m: int = 1000,
        free_only: bool = False,
    ) -> Poi | None:
        """Closest catalog POI to ``location`` within ``radius_m``, or None."""
        candidates = self._gateway.search_nearby(
            location.lat, location.lon, radius_m=radius_m, category=category
        )
        if free_only:
            candidates = [p for p in candidates if p.price_level == 0]

        found = nearest(location, [p.geo for p in candidates], self._metric)
        if found is None:
            return None
        index, _ = found
        return candidates[index]
