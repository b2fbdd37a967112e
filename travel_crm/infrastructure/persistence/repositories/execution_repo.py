"""Execution repository: executions, their step queue, and worker claims."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from travel_crm.domain.entities import ExecutionEntity, ExecutionStepEntity
from travel_crm.domain.enums import ActionType, ExecutionStatus, StepStatus
from travel_crm.domain.exceptions import ResourceNotFoundException
from travel_crm.infrastructure.persistence.models.automation import (
    Automation,
    AutomationExecution,
    ExecutionStep,
)
from travel_crm.infrastructure.persistence.repositories.base import BaseRepository
from travel_crm.shared.utils.datetime import ensure_utc


def _step_to_entity(s: ExecutionStep) -> ExecutionStepEntity:
    return ExecutionStepEntity(
        id=s.id,
        execution_id=s.execution_id,
        order=s.order,
        action_type=ActionType(s.action_type),
        parameters=dict(s.parameters or {}),
        delay_minutes=s.delay_minutes,
        status=StepStatus(s.status),
        due_at=ensure_utc(s.due_at),
        attempts=s.attempts,
        started_at=ensure_utc(s.started_at),
        completed_at=ensure_utc(s.completed_at),
        result=s.result,
        error=s.error,
    )


def _execution_to_entity(e: AutomationExecution) -> ExecutionEntity:
    """Map AutomationExecution ORM (with loaded steps) to ExecutionEntity."""
    return ExecutionEntity(
        id=e.id,
        automation_id=e.automation_id,
        triggered_by=dict(e.triggered_by or {}),
        status=ExecutionStatus(e.status),
        steps=[_step_to_entity(s) for s in e.steps],
        started_at=ensure_utc(e.started_at),
        completed_at=ensure_utc(e.completed_at),
        error=e.error,
        idempotency_key=e.idempotency_key,
        claimed_by=e.claimed_by,
        claimed_until=ensure_utc(e.claimed_until),
    )


def _apply_step(orm: ExecutionStep, step: ExecutionStepEntity) -> None:
    orm.status = step.status.value
    orm.due_at = step.due_at
    orm.attempts = step.attempts
    orm.started_at = step.started_at
    orm.completed_at = step.completed_at
    orm.result = step.result
    orm.error = step.error


class ExecutionRepository(BaseRepository[AutomationExecution]):
    """Execution repository. Steps are loaded with their execution, ordered by position."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, AutomationExecution)

    async def create_execution(self, execution: ExecutionEntity) -> ExecutionEntity:
        """Insert execution and its steps inside a savepoint.

        If another transaction already stored an execution with the same
        idempotency key for this automation, that execution is returned instead.
        """
        orm = AutomationExecution(
            id=execution.id,
            automation_id=execution.automation_id,
            status=execution.status.value,
            triggered_by=execution.triggered_by,
            started_at=execution.started_at,
            completed_at=execution.completed_at,
            error=execution.error,
            idempotency_key=execution.idempotency_key,
            claimed_by=execution.claimed_by,
            claimed_until=execution.claimed_until,
            steps=[
                ExecutionStep(
                    id=step.id,
                    position=position,
                    order=step.order,
                    action_type=step.action_type.value,
                    parameters=step.parameters,
                    delay_minutes=step.delay_minutes,
                    status=step.status.value,
                    due_at=step.due_at,
                    attempts=step.attempts,
                    started_at=step.started_at,
                    completed_at=step.completed_at,
                    result=step.result,
                    error=step.error,
                )
                for position, step in enumerate(execution.steps)
            ],
        )
        try:
            async with self.db.begin_nested():
                self.db.add(orm)
                await self.db.flush()
        except IntegrityError:
            # Lost a race on (automation_id, idempotency_key): hand back the winner.
            if not execution.idempotency_key:
                raise
            existing = await self.get_by_idempotency_key(
                execution.automation_id, execution.idempotency_key
            )
            if existing is None:
                raise
            return existing
        return _execution_to_entity(orm)

    async def save_execution(self, execution: ExecutionEntity) -> ExecutionEntity:
        """Write back status, claim and per-step progress.

        Raises:
            ResourceNotFoundException: If the execution no longer exists.
        """
        orm = await self._get_orm(execution.id)
        if not orm:
            raise ResourceNotFoundException("execution", execution.id)
        orm.status = execution.status.value
        orm.started_at = execution.started_at
        orm.completed_at = execution.completed_at
        orm.error = execution.error
        orm.claimed_by = execution.claimed_by
        orm.claimed_until = execution.claimed_until
        by_id = {s.id: s for s in orm.steps}
        for step in execution.steps:
            row = by_id.get(step.id)
            if row is not None:
                _apply_step(row, step)
        await self.db.flush()
        return _execution_to_entity(orm)

    async def get_by_id(self, execution_id: str) -> ExecutionEntity | None:
        row = await self._get_orm(execution_id)
        return _execution_to_entity(row) if row else None

    async def get_for_update(self, execution_id: str) -> ExecutionEntity | None:
        """Load the execution under a row lock held until the transaction ends.

        Refreshes any copy already in the session so a concurrent commit
        (cancel, pause, another worker) is seen.
        """
        result = await self.db.execute(
            select(AutomationExecution)
            .where(AutomationExecution.id == execution_id)
            .with_for_update(of=AutomationExecution)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _execution_to_entity(row) if row else None

    async def get_by_idempotency_key(
        self, automation_id: str, idempotency_key: str
    ) -> ExecutionEntity | None:
        result = await self.db.execute(
            select(AutomationExecution).where(
                AutomationExecution.automation_id == automation_id,
                AutomationExecution.idempotency_key == idempotency_key,
            )
        )
        row = result.scalar_one_or_none()
        return _execution_to_entity(row) if row else None

    async def list_by_automation(
        self, automation_id: str, skip: int = 0, limit: int = 50
    ) -> list[ExecutionEntity]:
        result = await self.db.execute(
            select(AutomationExecution)
            .where(AutomationExecution.automation_id == automation_id)
            .order_by(AutomationExecution.started_at.desc().nulls_last())
            .offset(skip)
            .limit(limit)
        )
        return [_execution_to_entity(e) for e in result.scalars().all()]

    async def get_latest_for_automations(
        self, automation_ids: list[str], per_automation: int
    ) -> dict[str, list[ExecutionEntity]]:
        """Latest executions per automation in one query (row_number window)."""
        out: dict[str, list[ExecutionEntity]] = {aid: [] for aid in automation_ids}
        if not automation_ids:
            return out
        ranked = (
            select(
                AutomationExecution.id.label("id"),
                func.row_number()
                .over(
                    partition_by=AutomationExecution.automation_id,
                    order_by=AutomationExecution.started_at.desc().nulls_last(),
                )
                .label("rn"),
            )
            .where(AutomationExecution.automation_id.in_(automation_ids))
            .subquery()
        )
        result = await self.db.execute(
            select(AutomationExecution)
            .join(ranked, ranked.c.id == AutomationExecution.id)
            .where(ranked.c.rn <= per_automation)
            .order_by(
                AutomationExecution.automation_id,
                AutomationExecution.started_at.desc().nulls_last(),
            )
        )
        for row in result.scalars().all():
            out[row.automation_id].append(_execution_to_entity(row))
        return out

    async def count_executions(
        self,
        *,
        since: datetime | None = None,
        status: ExecutionStatus | None = None,
    ) -> int:
        q = select(func.count(AutomationExecution.id))
        if since is not None:
            q = q.where(AutomationExecution.started_at >= since)
        if status is not None:
            q = q.where(AutomationExecution.status == status.value)
        return await self.db.scalar(q) or 0

    async def list_recent_with_names(
        self, since: datetime, limit: int = 10
    ) -> list[tuple[ExecutionEntity, str]]:
        result = await self.db.execute(
            select(AutomationExecution, Automation.name)
            .join(Automation, Automation.id == AutomationExecution.automation_id)
            .where(AutomationExecution.started_at >= since)
            .order_by(AutomationExecution.started_at.desc())
            .limit(limit)
        )
        return [(_execution_to_entity(e), name) for e, name in result.all()]

    async def claim_due(
        self,
        worker_id: str,
        now: datetime,
        lease_until: datetime,
        limit: int,
    ) -> list[ExecutionEntity]:
        """Lease running executions whose next step is due.

        Rows locked by another worker's open transaction are skipped
        (FOR UPDATE SKIP LOCKED); rows leased by another worker are skipped
        until the lease expires.
        """
        step_due = (
            select(ExecutionStep.id)
            .where(
                ExecutionStep.execution_id == AutomationExecution.id,
                ExecutionStep.status == StepStatus.PENDING.value,
                ExecutionStep.due_at <= now,
            )
            .exists()
        )
        result = await self.db.execute(
            select(AutomationExecution)
            .where(
                AutomationExecution.status == ExecutionStatus.RUNNING.value,
                step_due,
                or_(
                    AutomationExecution.claimed_until.is_(None),
                    AutomationExecution.claimed_until < now,
                ),
            )
            .order_by(AutomationExecution.started_at.asc())
            .limit(limit)
            .with_for_update(of=AutomationExecution, skip_locked=True)
        )
        claimed = list(result.scalars().all())
        for row in claimed:
            row.claimed_by = worker_id
            row.claimed_until = lease_until
        await self.db.flush()
        return [_execution_to_entity(row) for row in claimed]
