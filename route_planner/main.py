"""FastAPI application."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from route_planner.api.routes.health import router as health_router
from route_planner.api.routes.metrics import router as metrics_router
from route_planner.api.routes.planning import router as planning_router
from route_planner.api.routes.routes import router as routes_router
from route_planner.errors import (
    ConcurrencyConflictError,
    NotFoundError,
    RoutePlannerError,
    UpstreamUnavailableError,
    ValidationError,
)
from route_planner.utils.logging import configure_logging

ERROR_STATUS: dict[type[RoutePlannerError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UpstreamUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
}

configure_logging()

app = FastAPI(title="Route Planner API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(routes_router)
app.include_router(planning_router)


@app.exception_handler(RoutePlannerError)
async def route_planner_error_handler(request: Request, exc: RoutePlannerError) -> JSONResponse:
    """Map engine errors to HTTP status codes."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "retryable": exc.retryable},
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Route Planner API", "version": "0.1.0"}
