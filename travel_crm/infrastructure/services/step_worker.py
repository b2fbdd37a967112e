"""Background worker that advances executions whose delayed steps are due.

Runs inside the application process (started by the lifespan). Each poll
claims a batch in one short transaction, then advances every claimed
execution in its own transaction so one failing execution does not roll
back the others. Each advance re-reads its execution under a row lock and
skips it if it was paused, cancelled or re-claimed in between.
"""

from __future__ import annotations

import asyncio
import os
import socket

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from travel_crm.core.config import Settings
from travel_crm.infrastructure.external.crm_gateway import LoggingCrmGateway
from travel_crm.infrastructure.persistence.repositories.execution_repo import (
    ExecutionRepository,
)
from travel_crm.infrastructure.services.action_handlers import ActionDispatcher
from travel_crm.infrastructure.services.automation_engine import AutomationEngine
from travel_crm.shared.telemetry.logging import get_logger
from travel_crm.shared.telemetry.tracing import add_span_attributes, traced

logger = get_logger(__name__)


def default_worker_id() -> str:
    return f"{socket.gethostname()}:{os.getpid()}"


class ScheduledStepWorker:
    """Polls for due steps every poll_interval seconds until stopped."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
        *,
        worker_id: str | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.settings = settings
        self.worker_id = worker_id or default_worker_id()
        self.gateway = LoggingCrmGateway()

    def _engine(self, session: AsyncSession) -> AutomationEngine:
        return AutomationEngine.from_settings(
            ExecutionRepository(session), ActionDispatcher(self.gateway), self.settings
        )

    @traced("step_worker.poll")
    async def run_once(self) -> int:
        """One poll: claim due executions and advance each. Returns how many were advanced."""
        add_span_attributes(worker_id=self.worker_id)
        async with self.session_factory() as session:
            async with session.begin():
                claimed = await self._engine(session).claim_due(self.worker_id)
        advanced = 0
        for execution in claimed:
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        result = await self._engine(session).advance_claimed(
                            execution.id, self.worker_id
                        )
                if result is not None:
                    advanced += 1
            except Exception:
                # Lease expires on its own; another poll picks the execution up again.
                logger.exception("Worker %s failed to advance execution %s", self.worker_id, execution.id)
        add_span_attributes(claimed=len(claimed), advanced=advanced)
        if claimed:
            logger.info("Worker %s advanced %d/%d due executions", self.worker_id, advanced, len(claimed))
        return advanced

    async def run_forever(self) -> None:
        """Poll until cancelled."""
        interval = self.settings.scheduler_poll_interval_seconds
        logger.info("Step worker %s started (poll every %.1fs)", self.worker_id, interval)
        try:
            while True:
                try:
                    await self.run_once()
                except Exception:
                    logger.exception("Step worker %s poll failed", self.worker_id)
                await asyncio.sleep(interval)
        finally:
            logger.info("Step worker %s stopped", self.worker_id)
