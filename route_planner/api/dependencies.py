"""FastAPI providers for the gateway, repository and services."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from route_planner.adapters.poi_gateway import HttpPoiGateway, PoiGateway
from route_planner.adapters.resilience import CircuitBreaker, RetryPolicy
from route_planner.config import get_settings
from route_planner.db.engine import get_session
from route_planner.db.repositories import RouteRepository
from route_planner.db.sql_repositories import SqlRouteRepository
from route_planner.optimization.sequencer import DaySequencer
from route_planner.services.cache import CachedItineraryService, RouteCache
from route_planner.services.itinerary import ItineraryService
from route_planner.services.planning import PlanningService
from route_planner.utils.logging import StructuredGatewayLogger
from route_planner.utils.metrics import PrometheusGatewayMetrics, PrometheusOptimizerMetrics


@lru_cache
def get_poi_gateway() -> PoiGateway:
    """Process-wide catalog client; the breaker state is shared across requests."""
    settings = get_settings()
    return HttpPoiGateway(
        base_url=settings.poi_service_url,
        policy=RetryPolicy(
            timeout_ms=settings.poi_timeout_ms,
            retry_count=settings.poi_retry_count,
            retry_jitter_min_ms=settings.poi_retry_jitter_min_ms,
            retry_jitter_max_ms=settings.poi_retry_jitter_max_ms,
        ),
        breaker=CircuitBreaker(
            name="poi_catalog",
            failure_threshold=settings.poi_breaker_failures,
            window_seconds=settings.poi_breaker_window_sec,
            half_open_seconds=settings.poi_breaker_half_open_sec,
        ),
        metrics=PrometheusGatewayMetrics(),
        logger=StructuredGatewayLogger(),
    )


@lru_cache
def get_route_cache() -> RouteCache:
    return RouteCache()


def get_route_repository(
    session: Annotated[Session, Depends(get_session)],
) -> RouteRepository:
    return SqlRouteRepository(session)


def get_itinerary_service(
    repository: Annotated[RouteRepository, Depends(get_route_repository)],
    gateway: Annotated[PoiGateway, Depends(get_poi_gateway)],
) -> ItineraryService:
    settings = get_settings()
    service = ItineraryService(
        repository,
        gateway,
        settings=settings,
        sequencer=DaySequencer(
            exhaustive_limit=settings.exhaustive_search_limit,
            metrics=PrometheusOptimizerMetrics(),
        ),
    )
    if settings.route_cache_ttl_seconds > 0:
        return CachedItineraryService(  # type: ignore[return-value]
            service, settings.route_cache_ttl_seconds, cache=get_route_cache()
        )
    return service


def get_planning_service(
    gateway: Annotated[PoiGateway, Depends(get_poi_gateway)],
) -> PlanningService:
    return PlanningService(gateway, fetch_limit=get_settings().suggestion_fetch_limit)
