"""Health check endpoints. Used for liveness and readiness probes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from travel_crm.core.config import get_settings
from travel_crm.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
    WorkerState,
)
from travel_crm.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _worker_state(request: Request) -> WorkerState:
    if not get_settings().scheduler_enabled:
        return "disabled"
    task = getattr(request.app.state, "step_worker_task", None)
    if task is None or task.done():
        return "stopped"
    return "running"


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness: always ok while the process serves requests."""
    return HealthResponse(version=get_settings().app_version)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Database unreachable", "model": ReadinessErrorResponse}},
)
async def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """Readiness: 503 when a configured database does not answer SELECT 1.

    Also reports whether the delayed-step worker is running; a stopped
    worker does not fail readiness (API requests still run immediate steps).
    """
    settings = get_settings()
    scheduler = _worker_state(request)
    if not settings.database_configured:
        return ReadinessResponse(scheduler=scheduler)

    from travel_crm.infrastructure.persistence.database import get_session_factory

    session_factory = get_session_factory()
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Readiness check failed: %s", e)
        return JSONResponse(
            status_code=503,
            content=ReadinessErrorResponse(
                message=f"Database unreachable: {e.__class__.__name__}",
            ).model_dump(),
        )
    return ReadinessResponse(database="ok", scheduler=scheduler)
