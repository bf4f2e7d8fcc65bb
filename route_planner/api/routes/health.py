"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from route_planner.config import Settings, get_settings
from route_planner.db.engine import create_engine_from_settings, create_session_factory

router = APIRouter()


def check_db(settings: Settings) -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        engine = create_engine_from_settings(settings)
        session_factory = create_session_factory(engine)

        with session_factory() as session:
            session.execute(text("SELECT 1"))

        return (True, "ok")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
def healthz() -> dict[str, Any] | JSONResponse:
    """Health check with component status.

    The POI catalog is not checked: the service degrades to cached snapshots
    without it.

    Returns:
        200 with component status if the database is reachable
        503 otherwise
    """
    db_ok, db_status = check_db(get_settings())

    response_body = {
        "status": "ok" if db_ok else "degraded",
        "components": {"db": db_status},
    }

    if not db_ok:
        return JSONResponse(content=response_body, status_code=503)

    return response_body
