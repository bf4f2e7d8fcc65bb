"""Shared pytest fixtures for all test suites."""

import uuid
from datetime import datetime

import pytest

from route_planner.adapters.poi_gateway import InMemoryPoiGateway
from route_planner.config import Settings
from route_planner.db.context import RequestContext
from route_planner.db.inmemory import InMemoryRouteRepository
from route_planner.models import Poi
from route_planner.services.itinerary import ItineraryService
from tests.factories import flat_metric, make_poi

FIXED_NOW = datetime(2025, 6, 1, 8, 30)


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext(user_id=uuid.uuid4())


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite://", route_cache_ttl_seconds=0)


@pytest.fixture
def pois() -> list[Poi]:
    """A(0,0), B(0,3), C(4,0) plus a far-away D and an unlocated E."""
    return [
        make_poi(1, 0.0, 0.0, name="A"),
        make_poi(2, 0.0, 3.0, name="B", category="park", rating=3.0),
        make_poi(3, 4.0, 0.0, name="C", category="historic monument", rating=5.0),
        make_poi(4, 10.0, 10.0, name="D", category="viewpoint", rating=4.5),
        make_poi(5, None, None, name="E", category="cafe", rating=2.0),
    ]


@pytest.fixture
def gateway(pois: list[Poi]) -> InMemoryPoiGateway:
    return InMemoryPoiGateway(pois)


@pytest.fixture
def repository() -> InMemoryRouteRepository:
    return InMemoryRouteRepository()


@pytest.fixture
def service(
    repository: InMemoryRouteRepository, gateway: InMemoryPoiGateway, settings: Settings
) -> ItineraryService:
    return ItineraryService(
        repository, gateway, settings=settings, metric=flat_metric, clock=lambda: FIXED_NOW
    )
