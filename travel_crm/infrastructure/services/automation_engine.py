"""Automation engine: run executions as a durable, ordered step queue (implements IAutomationEngine).

Each execution owns one step per action, in ascending order. Only the step
next in line carries a due time: the first gets trigger fire + its delay,
each later one gets its predecessor's completion + its own delay. Steps that
are already due run inline; the rest wait in the database for the polling
worker (see step_worker), which leases executions so only one worker
advances a given execution at a time.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from pydantic_core import to_jsonable_python

from travel_crm.application.services.scheduling import next_due_at, plan_action_schedule
from travel_crm.domain.entities import (
    AutomationEntity,
    ExecutionEntity,
    ExecutionStepEntity,
)
from travel_crm.domain.enums import ExecutionStatus, StepStatus
from travel_crm.domain.exceptions import (
    CrmException,
    ExecutionStateException,
    ResourceNotFoundException,
)
from travel_crm.shared.telemetry.logging import get_logger
from travel_crm.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    traced,
)
from travel_crm.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from travel_crm.application.interfaces.repositories import IExecutionRepository
    from travel_crm.application.interfaces.services import IActionDispatcher
    from travel_crm.core.config import Settings

logger = get_logger(__name__)

CANCELLED_MESSAGE = "Execution cancelled"


def _summarize_failures(execution: ExecutionEntity) -> str:
    failed = execution.failed_steps()
    parts = [f"#{s.order} {s.action_type.value}: {s.error}" for s in failed]
    summary = f"{len(failed)} of {len(execution.steps)} actions failed"
    cancelled = sum(1 for s in execution.steps if s.status == StepStatus.CANCELLED)
    if cancelled:
        summary += f", {cancelled} cancelled"
    return f"{summary}: " + "; ".join(parts) if parts else summary


class AutomationEngine:
    """Starts executions and advances their step queues.

    Dispatcher errors derived from CrmException (invalid parameters, missing
    contact, unknown action type) fail the step at once; any other error is
    retried up to max_attempts with retry_backoff_seconds between attempts.
    """

    def __init__(
        self,
        execution_repo: IExecutionRepository,
        dispatcher: IActionDispatcher,
        *,
        max_attempts: int = 3,
        retry_backoff_seconds: int = 60,
        stop_on_failure: bool = False,
        lease_seconds: int = 300,
        batch_size: int = 50,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.execution_repo = execution_repo
        self.dispatcher = dispatcher
        self.max_attempts = max_attempts
        self.retry_backoff = timedelta(seconds=retry_backoff_seconds)
        self.stop_on_failure = stop_on_failure
        self.lease = timedelta(seconds=lease_seconds)
        self.batch_size = batch_size
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        execution_repo: IExecutionRepository,
        dispatcher: IActionDispatcher,
        settings: Settings,
    ) -> AutomationEngine:
        return cls(
            execution_repo,
            dispatcher,
            max_attempts=settings.automation_max_action_attempts,
            retry_backoff_seconds=settings.automation_retry_backoff_seconds,
            stop_on_failure=settings.automation_stop_on_action_failure,
            lease_seconds=settings.scheduler_lease_seconds,
            batch_size=settings.scheduler_batch_size,
        )

    async def _lock_or_404(self, execution_id: str) -> ExecutionEntity:
        execution = await self.execution_repo.get_for_update(execution_id)
        if not execution:
            raise ResourceNotFoundException("execution", execution_id)
        return execution

    @traced("automation.start_execution")
    async def start_execution(
        self,
        automation: AutomationEntity,
        trigger_data: dict[str, Any],
        idempotency_key: str | None = None,
    ) -> ExecutionEntity:
        """Create an execution for automation and run every step that is already due.

        With an idempotency_key that was already used for this automation the
        existing execution is returned and nothing runs again.
        """
        add_span_attributes(automation_id=automation.id)
        if idempotency_key:
            existing = await self.execution_repo.get_by_idempotency_key(
                automation.id, idempotency_key
            )
            if existing:
                logger.info(
                    "Duplicate trigger for automation %s (key=%s): reusing execution %s",
                    automation.id,
                    idempotency_key,
                    existing.id,
                )
                return existing

        fired_at = self.clock()
        execution = ExecutionEntity(
            automation_id=automation.id,
            triggered_by=to_jsonable_python(trigger_data),
            status=ExecutionStatus.RUNNING,
            started_at=fired_at,
            idempotency_key=idempotency_key,
        )
        execution.steps = [
            ExecutionStepEntity(
                execution_id=execution.id,
                order=planned.order,
                action_type=planned.action_type,
                parameters=planned.parameters,
                delay_minutes=planned.delay_minutes,
                due_at=planned.earliest_fire_at(fired_at) if planned.position == 0 else None,
            )
            for planned in plan_action_schedule(automation.actions)
        ]
        stored = await self.execution_repo.create_execution(execution)
        if stored.id != execution.id:
            logger.info(
                "Duplicate trigger for automation %s (key=%s) raced; reusing execution %s",
                automation.id,
                idempotency_key,
                stored.id,
            )
            return stored
        logger.info(
            "Execution %s started for automation %s (%d steps)",
            execution.id,
            automation.id,
            len(execution.steps),
        )
        return await self.run_ready(execution)

    @traced("automation.run_ready")
    async def run_ready(self, execution: ExecutionEntity) -> ExecutionEntity:
        """Run due steps in order until one is not due yet, then persist.

        Finishes the execution when no step is left. Releases any worker lease.
        """
        add_span_attributes(execution_id=execution.id, automation_id=execution.automation_id)
        while execution.status == ExecutionStatus.RUNNING:
            step = execution.next_pending_step()
            if step is None:
                self._finish(execution)
                break
            now = self.clock()
            if step.due_at is None:
                step.due_at = now
            if step.due_at > now:
                break
            await self._run_step(execution, step)
            if step.status == StepStatus.PENDING:
                # retry scheduled
                break
            if step.status == StepStatus.FAILED and self.stop_on_failure:
                self._cancel_remaining(execution)
                continue
            following = execution.next_pending_step()
            if following is not None:
                following.due_at = next_due_at(step.completed_at or now, following.delay_minutes)
        execution.claimed_by = None
        execution.claimed_until = None
        return await self.execution_repo.save_execution(execution)

    async def _run_step(self, execution: ExecutionEntity, step: ExecutionStepEntity) -> None:
        step.status = StepStatus.RUNNING
        step.attempts += 1
        step.started_at = self.clock()
        try:
            result = await self.dispatcher.dispatch(
                step.action_type, step.parameters, execution.triggered_by
            )
        except CrmException as e:
            logger.warning(
                "Action %s (#%d) of execution %s rejected: %s",
                step.action_type.value,
                step.order,
                execution.id,
                e.message,
            )
            add_span_event(
                "step.rejected", {"order": step.order, "action_type": step.action_type.value}
            )
            self._fail_step(step, e.message)
            return
        except Exception as e:
            logger.exception(
                "Action %s (#%d) of execution %s failed (attempt %d/%d)",
                step.action_type.value,
                step.order,
                execution.id,
                step.attempts,
                self.max_attempts,
            )
            add_span_event(
                "step.error",
                {"order": step.order, "action_type": step.action_type.value, "attempt": step.attempts},
            )
            if step.attempts < self.max_attempts:
                step.status = StepStatus.PENDING
                step.error = str(e) or e.__class__.__name__
                step.due_at = self.clock() + self.retry_backoff
                return
            self._fail_step(step, str(e) or e.__class__.__name__)
            return
        step.status = StepStatus.SUCCESS
        step.result = result
        step.error = None
        step.completed_at = self.clock()
        logger.info(
            "Action %s (#%d) executed for execution %s",
            step.action_type.value,
            step.order,
            execution.id,
        )

    def _fail_step(self, step: ExecutionStepEntity, message: str) -> None:
        step.status = StepStatus.FAILED
        step.error = message
        step.completed_at = self.clock()

    def _cancel_remaining(self, execution: ExecutionEntity) -> None:
        for step in execution.steps:
            if not step.is_finished:
                step.status = StepStatus.CANCELLED
                step.due_at = None

    def _finish(self, execution: ExecutionEntity) -> None:
        if all(s.status == StepStatus.SUCCESS for s in execution.steps):
            execution.status = ExecutionStatus.COMPLETED
            execution.error = None
        else:
            execution.status = ExecutionStatus.FAILED
            execution.error = _summarize_failures(execution)
        add_span_attributes(execution_status=execution.status.value)
        execution.completed_at = self.clock()
        logger.info(
            "Execution %s finished: %s (%d/%d actions succeeded)",
            execution.id,
            execution.status.value,
            execution.actions_succeeded,
            len(execution.steps),
        )

    @traced("automation.pause_execution")
    async def pause_execution(self, execution_id: str) -> ExecutionEntity:
        """Raises ExecutionStateException unless the execution is pending or running."""
        execution = await self._lock_or_404(execution_id)
        if execution.status not in (ExecutionStatus.PENDING, ExecutionStatus.RUNNING):
            raise ExecutionStateException(execution_id, execution.status.value, "pause")
        execution.status = ExecutionStatus.PAUSED
        execution.claimed_by = None
        execution.claimed_until = None
        logger.info("Execution %s paused", execution_id)
        return await self.execution_repo.save_execution(execution)

    @traced("automation.resume_execution")
    async def resume_execution(self, execution_id: str) -> ExecutionEntity:
        """Raises ExecutionStateException unless the execution is paused."""
        execution = await self._lock_or_404(execution_id)
        if execution.status != ExecutionStatus.PAUSED:
            raise ExecutionStateException(execution_id, execution.status.value, "resume")
        execution.status = ExecutionStatus.RUNNING
        step = execution.next_pending_step()
        if step is not None:
            now = self.clock()
            if step.attempts:
                # Waiting out a retry backoff: keep it.
                step.due_at = max(step.due_at or now, now)
            else:
                step.due_at = next_due_at(now, step.delay_minutes)
        logger.info("Execution %s resumed", execution_id)
        return await self.run_ready(execution)

    @traced("automation.cancel_execution")
    async def cancel_execution(self, execution_id: str) -> ExecutionEntity:
        """Raises ExecutionStateException if the execution already completed or failed."""
        execution = await self._lock_or_404(execution_id)
        if execution.is_terminal:
            raise ExecutionStateException(execution_id, execution.status.value, "cancel")
        self._cancel_remaining(execution)
        execution.status = ExecutionStatus.FAILED
        execution.error = CANCELLED_MESSAGE
        execution.completed_at = self.clock()
        execution.claimed_by = None
        execution.claimed_until = None
        logger.info("Execution %s cancelled", execution_id)
        return await self.execution_repo.save_execution(execution)

    async def claim_due(self, worker_id: str) -> list[ExecutionEntity]:
        """Lease up to batch_size running executions whose next step is due."""
        now = self.clock()
        return await self.execution_repo.claim_due(
            worker_id, now, now + self.lease, self.batch_size
        )

    @traced("automation.advance_claimed")
    async def advance_claimed(self, execution_id: str, worker_id: str) -> ExecutionEntity | None:
        """Advance an execution this worker claimed, re-reading it under a row lock.

        Returns None without running anything when the execution was paused,
        cancelled or re-claimed by another worker since the claim.
        """
        add_span_attributes(execution_id=execution_id, worker_id=worker_id)
        execution = await self.execution_repo.get_for_update(execution_id)
        if execution is None:
            logger.info("Claimed execution %s no longer exists", execution_id)
            return None
        if execution.status != ExecutionStatus.RUNNING or execution.claimed_by != worker_id:
            logger.info(
                "Skipping execution %s: status %s, claimed by %s",
                execution_id,
                execution.status.value,
                execution.claimed_by,
            )
            return None
        return await self.run_ready(execution)

    @traced("automation.process_due")
    async def process_due(self, worker_id: str) -> int:
        """Claim due executions and advance each. Returns how many were claimed."""
        claimed = await self.claim_due(worker_id)
        add_span_attributes(worker_id=worker_id, claimed=len(claimed))
        for execution in claimed:
            await self.advance_claimed(execution.id, worker_id)
        return len(claimed)
