"""Execution domain entities.

An execution is one run of an automation. Its steps form a durable,
ordered queue: exactly one pending step (the next in line) carries a due
time; the steps behind it get theirs when their predecessor finishes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from travel_crm.domain.enums import ActionType, ExecutionStatus, StepStatus
from travel_crm.shared.utils.generators import generate_uuid


@dataclass
class ExecutionStepEntity:
    """Queued action of an execution (snapshot of the action at trigger time)."""

    execution_id: str
    order: int
    action_type: ActionType
    parameters: dict[str, Any]
    delay_minutes: int = 0
    status: StepStatus = StepStatus.PENDING
    due_at: datetime | None = None
    attempts: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    result: dict[str, Any] | None = None
    error: str | None = None
    id: str = field(default_factory=generate_uuid)

    @property
    def is_finished(self) -> bool:
        return self.status in (StepStatus.SUCCESS, StepStatus.FAILED, StepStatus.CANCELLED)

    def to_log_entry(self) -> dict[str, Any]:
        """Per-action outcome as exposed in Execution.actionsExecuted."""
        entry: dict[str, Any] = {
            "stepId": self.id,
            "order": self.order,
            "type": self.action_type.value,
            "status": self.status.value if self.is_finished else StepStatus.PENDING.value,
            "attempts": self.attempts,
            "dueAt": self.due_at.isoformat() if self.due_at else None,
            "executedAt": self.completed_at.isoformat() if self.completed_at else None,
        }
        if self.result is not None:
            entry["result"] = self.result
        if self.error is not None:
            entry["error"] = self.error
        return entry


@dataclass
class ExecutionEntity:
    """One run of an automation, tracking per-step outcomes and overall status."""

    automation_id: str
    triggered_by: dict[str, Any]
    status: ExecutionStatus = ExecutionStatus.PENDING
    steps: list[ExecutionStepEntity] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None
    idempotency_key: str | None = None
    claimed_by: str | None = None
    claimed_until: datetime | None = None
    id: str = field(default_factory=generate_uuid)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def next_pending_step(self) -> ExecutionStepEntity | None:
        """Return the first step (by order) that has not finished yet."""
        for step in self.steps:
            if not step.is_finished:
                return step
        return None

    def failed_steps(self) -> list[ExecutionStepEntity]:
        return [s for s in self.steps if s.status == StepStatus.FAILED]

    @property
    def actions_executed(self) -> list[dict[str, Any]]:
        return [s.to_log_entry() for s in self.steps]

    @property
    def actions_succeeded(self) -> int:
        return sum(1 for s in self.steps if s.status == StepStatus.SUCCESS)
