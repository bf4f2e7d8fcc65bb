"""Route endpoints - itinerary CRUD, point mutations and optimization."""

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from route_planner.api.auth import get_current_context
from route_planner.api.dependencies import get_itinerary_service
from route_planner.db.context import RequestContext
from route_planner.db.repositories import RouteSummary
from route_planner.models import EnrichedRoute, Route, TransportMode
from route_planner.services.itinerary import ItineraryService

router = APIRouter(prefix="/api/v1/routes", tags=["routes"])

Service = Annotated[ItineraryService, Depends(get_itinerary_service)]
Context = Annotated[RequestContext, Depends(get_current_context)]


class CreateRouteRequest(BaseModel):
    """Request body for POST /api/v1/routes."""

    name: str = Field(..., min_length=1, max_length=255, description="Route name")
    description: str | None = Field(None, max_length=500)
    city_id: int
    transport_mode: TransportMode = TransportMode.walk
    days_count: int = Field(1, ge=1, description="Number of empty days to create")
    start_date: datetime | None = Field(None, description="Planned start of day 1")


class UpdateRouteRequest(BaseModel):
    """Request body for PATCH /api/v1/routes/{route_id}."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=500)
    transport_mode: TransportMode | None = None


class DuplicateRouteRequest(BaseModel):
    """Request body for POST /api/v1/routes/{route_id}/duplicate."""

    name: str | None = Field(None, min_length=1, max_length=255)


class AddPointRequest(BaseModel):
    """Request body for POST /api/v1/routes/{route_id}/points."""

    poi_id: int
    day_number: int | None = Field(None, ge=1)
    order_index: int | None = Field(None, ge=1)
    estimated_duration_min: int | None = Field(None, ge=0)


class ReorderPointsRequest(BaseModel):
    """Request body for PUT /api/v1/routes/{route_id}/points/order."""

    point_ids: list[uuid.UUID]
    day_number: int | None = Field(None, ge=1, description="Restrict the reorder to one day")


class OptimizeRequest(BaseModel):
    """Request body for POST /api/v1/routes/{route_id}/optimize.

    Unknown modes fall back to time optimization.
    """

    mode: str = "time"


class CountResponse(BaseModel):
    count: int


class NameAvailabilityResponse(BaseModel):
    name: str
    available: bool


@router.post("", response_model=Route, status_code=status.HTTP_201_CREATED)
def create_route(request: CreateRouteRequest, ctx: Context, service: Service) -> Route:
    """Create a route with empty days."""
    return service.create_itinerary(
        ctx,
        name=request.name,
        city_id=request.city_id,
        transport_mode=request.transport_mode,
        days_count=request.days_count,
        start_date=request.start_date,
        description=request.description,
    )


@router.get("", response_model=list[RouteSummary])
def list_routes(
    ctx: Context,
    service: Service,
    archived: Annotated[bool, Query()] = False,
    city_id: Annotated[int | None, Query()] = None,
) -> list[RouteSummary]:
    """List the caller's routes, newest first."""
    return service.list_itineraries(ctx, archived=archived, city_id=city_id)


@router.get("/archived", response_model=list[RouteSummary])
def list_archived_routes(ctx: Context, service: Service) -> list[RouteSummary]:
    return service.list_itineraries(ctx, archived=True)


@router.get("/city/{city_id}", response_model=list[RouteSummary])
def list_city_routes(city_id: int, ctx: Context, service: Service) -> list[RouteSummary]:
    return service.list_itineraries(ctx, city_id=city_id)


@router.get("/count", response_model=CountResponse)
def count_routes(ctx: Context, service: Service) -> CountResponse:
    return CountResponse(count=service.count_itineraries(ctx))


@router.get("/check-name", response_model=NameAvailabilityResponse)
def check_name(
    name: Annotated[str, Query(min_length=1)], ctx: Context, service: Service
) -> NameAvailabilityResponse:
    return NameAvailabilityResponse(name=name, available=service.is_name_available(ctx, name))


@router.get("/{route_id}", response_model=Route)
def get_route(route_id: uuid.UUID, ctx: Context, service: Service) -> Route:
    return service.get_itinerary(ctx, route_id)


@router.get("/{route_id}/details", response_model=EnrichedRoute)
def get_route_details(route_id: uuid.UUID, ctx: Context, service: Service) -> EnrichedRoute:
    """Route with fresh catalog data; falls back to cached snapshots."""
    return service.enrich(service.get_itinerary(ctx, route_id))


@router.patch("/{route_id}", response_model=Route)
def update_route(
    route_id: uuid.UUID, request: UpdateRouteRequest, ctx: Context, service: Service
) -> Route:
    return service.update_itinerary(
        ctx,
        route_id,
        name=request.name,
        description=request.description,
        transport_mode=request.transport_mode,
    )


@router.delete("/{route_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_route(route_id: uuid.UUID, ctx: Context, service: Service) -> Response:
    service.delete(ctx, route_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{route_id}/archive", response_model=Route)
def archive_route(route_id: uuid.UUID, ctx: Context, service: Service) -> Route:
    return service.archive(ctx, route_id)


@router.post("/{route_id}/unarchive", response_model=Route)
def unarchive_route(route_id: uuid.UUID, ctx: Context, service: Service) -> Route:
    return service.unarchive(ctx, route_id)


@router.post("/{route_id}/duplicate", response_model=Route, status_code=status.HTTP_201_CREATED)
def duplicate_route(
    route_id: uuid.UUID,
    ctx: Context,
    service: Service,
    request: DuplicateRouteRequest | None = None,
) -> Route:
    return service.duplicate(ctx, route_id, new_name=request.name if request else None)


@router.post("/{route_id}/points", response_model=Route, status_code=status.HTTP_201_CREATED)
def add_point(
    route_id: uuid.UUID, request: AddPointRequest, ctx: Context, service: Service
) -> Route:
    return service.add_point(
        ctx,
        route_id,
        request.poi_id,
        day_number=request.day_number,
        order_index=request.order_index,
        estimated_duration_min=request.estimated_duration_min,
    )


@router.delete("/{route_id}/points/{poi_id}", response_model=Route)
def remove_point(route_id: uuid.UUID, poi_id: int, ctx: Context, service: Service) -> Route:
    """Remove every occurrence of a POI from the route."""
    return service.remove_point(ctx, route_id, poi_id)


@router.put("/{route_id}/points/order", response_model=Route)
def reorder_points(
    route_id: uuid.UUID, request: ReorderPointsRequest, ctx: Context, service: Service
) -> Route:
    return service.reorder_points(ctx, route_id, request.point_ids, day_number=request.day_number)


@router.post("/{route_id}/optimize", response_model=Route)
def optimize_route(
    route_id: uuid.UUID, request: OptimizeRequest, ctx: Context, service: Service
) -> Route:
    return service.optimize(ctx, route_id, request.mode)
