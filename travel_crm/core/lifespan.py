"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (step worker, telemetry, DB engine dispose).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from travel_crm.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: the delayed-step worker, when SCHEDULER_ENABLED and a database
    is configured. Shutdown: cancel the worker, flush
    telemetry, dispose the SQL engine.
    """
    settings = get_settings()

    # ---- Startup ----
    app.state.step_worker_task = None
    if settings.scheduler_enabled and settings.database_configured:
        from travel_crm.infrastructure.persistence.database import get_session_factory
        from travel_crm.infrastructure.services.step_worker import ScheduledStepWorker

        session_factory = get_session_factory()
        if session_factory is not None:
            worker = ScheduledStepWorker(session_factory, settings)
            app.state.step_worker_task = asyncio.create_task(worker.run_forever())
    elif settings.scheduler_enabled:
        logger.warning("Step worker not started: DATABASE_URL is not set")

    yield

    # ---- Shutdown ----
    worker_task = getattr(app.state, "step_worker_task", None)
    if worker_task is not None:
        worker_task.cancel()
        try:
            await worker_task
        except asyncio.CancelledError:
            pass
        app.state.step_worker_task = None
        logger.info("Step worker task stopped")

    from travel_crm.shared.telemetry.telemetry import get_telemetry

    telemetry = get_telemetry()
    if telemetry is not None:
        telemetry.shutdown()

    from travel_crm.infrastructure.persistence import database

    if getattr(database, "engine", None) is not None:
        await database.dispose_engine()
        logger.info("Database engine disposed")
