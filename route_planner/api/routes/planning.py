"""Planning endpoints - POI suggestions and nearest-POI lookup."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from route_planner.api.dependencies import get_planning_service
from route_planner.models import Geo, Poi
from route_planner.services.planning import PlanningService

router = APIRouter(prefix="/api/v1/planning", tags=["planning"])

Planner = Annotated[PlanningService, Depends(get_planning_service)]


@router.get("/suggestions", response_model=list[Poi])
def suggest_pois(
    planner: Planner,
    city_id: Annotated[int, Query()],
    category: Annotated[str | None, Query()] = None,
    min_rating: Annotated[float, Query(ge=0, le=5)] = 0.0,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[Poi]:
    """Top-rated verified POIs of a city."""
    return planner.suggest_pois(city_id, category=category, min_rating=min_rating, limit=limit)


@router.get("/nearest", response_model=Poi | None)
def find_nearest_poi(
    planner: Planner,
    lat: Annotated[float, Query(ge=-90, le=90)],
    lon: Annotated[float, Query(ge=-180, le=180)],
    category: Annotated[str | None, Query()] = None,
    radius_m: Annotated[int, Query(gt=0)] = 1000,
    free_only: Annotated[bool, Query()] = False,
) -> Poi | None:
    """Closest POI to a location, or null when none is within the radius."""
    return planner.find_nearest_poi(
        Geo(lat=lat, lon=lon), category=category, radius_m=radius_m, free_only=free_only
    )
