"""In-memory repositories and a recording CRM gateway for tests without a database.

They follow the repository protocols closely enough that AutomationService
and AutomationEngine cannot tell them apart from the SQL implementations.
Entities are copied on the way in and out, like rows loaded from a session.
"""

from __future__ import annotations

import copy
from collections import defaultdict
from datetime import UTC, datetime
from typing import Any

from travel_crm.domain.entities import AutomationEntity, ExecutionEntity
from travel_crm.domain.enums import ExecutionStatus, StepStatus, TriggerType
from travel_crm.domain.exceptions import ResourceNotFoundException
from travel_crm.shared.utils.datetime import utc_now

_EPOCH = datetime.min.replace(tzinfo=UTC)


class InMemoryAutomationRepository:
    def __init__(self) -> None:
        self.rows: dict[str, AutomationEntity] = {}
        self._seq: dict[str, int] = {}

    def _newest_first(self, rows: list[AutomationEntity]) -> list[AutomationEntity]:
        return sorted(rows, key=lambda a: (a.created_at, self._seq[a.id]), reverse=True)

    async def create_automation(self, automation: AutomationEntity) -> AutomationEntity:
        automation.created_at = automation.created_at or utc_now()
        automation.updated_at = automation.updated_at or automation.created_at
        self._seq[automation.id] = len(self._seq)
        self.rows[automation.id] = copy.deepcopy(automation)
        return copy.deepcopy(automation)

    async def get_by_id(self, automation_id: str) -> AutomationEntity | None:
        row = self.rows.get(automation_id)
        return copy.deepcopy(row) if row else None

    async def list_automations(
        self,
        *,
        is_active: bool | None = None,
        trigger_type: TriggerType | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[AutomationEntity], int]:
        rows = [
            a
            for a in self.rows.values()
            if (is_active is None or a.is_active == is_active)
            and (trigger_type is None or a.trigger_type == trigger_type)
        ]
        ordered = self._newest_first(rows)
        return [copy.deepcopy(a) for a in ordered[skip : skip + limit]], len(rows)

    async def update_automation(self, automation: AutomationEntity) -> AutomationEntity:
        if automation.id not in self.rows:
            raise ResourceNotFoundException("automation", automation.id)
        self.rows[automation.id] = copy.deepcopy(automation)
        return copy.deepcopy(automation)

    async def set_active(self, automation_id: str, is_active: bool) -> AutomationEntity | None:
        row = self.rows.get(automation_id)
        if row is None:
            return None
        row.is_active = is_active
        row.updated_at = utc_now()
        return copy.deepcopy(row)

    async def delete_automation(self, automation_id: str) -> bool:
        return self.rows.pop(automation_id, None) is not None

    async def get_active_by_trigger(self, trigger_type: TriggerType) -> list[AutomationEntity]:
        rows = [a for a in self.rows.values() if a.is_active and a.trigger_type == trigger_type]
        return [copy.deepcopy(a) for a in reversed(self._newest_first(rows))]

    async def count_automations(self, is_active: bool | None = None) -> int:
        return sum(1 for a in self.rows.values() if is_active is None or a.is_active == is_active)


class InMemoryExecutionRepository:
    def __init__(self, automations: InMemoryAutomationRepository | None = None) -> None:
        self.automations = automations
        self.rows: dict[str, ExecutionEntity] = {}

    def _live(self) -> list[ExecutionEntity]:
        # Executions vanish with their automation (FK cascade).
        if self.automations is None:
            return list(self.rows.values())
        return [e for e in self.rows.values() if e.automation_id in self.automations.rows]

    @staticmethod
    def _recent_first(rows: list[ExecutionEntity]) -> list[ExecutionEntity]:
        return sorted(rows, key=lambda e: e.started_at or _EPOCH, reverse=True)

    async def create_execution(self, execution: ExecutionEntity) -> ExecutionEntity:
        if execution.idempotency_key:
            # unique (automation_id, idempotency_key)
            for row in self._live():
                if (
                    row.automation_id == execution.automation_id
                    and row.idempotency_key == execution.idempotency_key
                ):
                    return copy.deepcopy(row)
        self.rows[execution.id] = copy.deepcopy(execution)
        return copy.deepcopy(execution)

    async def save_execution(self, execution: ExecutionEntity) -> ExecutionEntity:
        if execution.id not in self.rows:
            raise ResourceNotFoundException("execution", execution.id)
        self.rows[execution.id] = copy.deepcopy(execution)
        return copy.deepcopy(execution)

    async def get_by_id(self, execution_id: str) -> ExecutionEntity | None:
        row = self.rows.get(execution_id)
        if row is None or (self.automations is not None and row.automation_id not in self.automations.rows):
            return None
        return copy.deepcopy(row)

    async def get_for_update(self, execution_id: str) -> ExecutionEntity | None:
        return await self.get_by_id(execution_id)

    async def get_by_idempotency_key(
        self, automation_id: str, idempotency_key: str
    ) -> ExecutionEntity | None:
        for row in self._live():
            if row.automation_id == automation_id and row.idempotency_key == idempotency_key:
                return copy.deepcopy(row)
        return None

    async def list_by_automation(
        self, automation_id: str, skip: int = 0, limit: int = 50
    ) -> list[ExecutionEntity]:
        rows = [e for e in self._live() if e.automation_id == automation_id]
        return [copy.deepcopy(e) for e in self._recent_first(rows)[skip : skip + limit]]

    async def get_latest_for_automations(
        self, automation_ids: list[str], per_automation: int
    ) -> dict[str, list[ExecutionEntity]]:
        grouped: dict[str, list[ExecutionEntity]] = defaultdict(list)
        for row in self._recent_first(self._live()):
            if row.automation_id in automation_ids and len(grouped[row.automation_id]) < per_automation:
                grouped[row.automation_id].append(copy.deepcopy(row))
        return {aid: grouped.get(aid, []) for aid in automation_ids}

    async def count_executions(
        self,
        *,
        since: datetime | None = None,
        status: ExecutionStatus | None = None,
    ) -> int:
        return sum(
            1
            for e in self._live()
            if (since is None or (e.started_at is not None and e.started_at >= since))
            and (status is None or e.status == status)
        )

    async def list_recent_with_names(
        self, since: datetime, limit: int = 10
    ) -> list[tuple[ExecutionEntity, str]]:
        names = {aid: a.name for aid, a in (self.automations.rows if self.automations else {}).items()}
        rows = [e for e in self._live() if e.started_at is not None and e.started_at >= since]
        return [
            (copy.deepcopy(e), names.get(e.automation_id, ""))
            for e in self._recent_first(rows)[:limit]
        ]

    async def claim_due(
        self,
        worker_id: str,
        now: datetime,
        lease_until: datetime,
        limit: int,
    ) -> list[ExecutionEntity]:
        claimed: list[ExecutionEntity] = []
        for row in sorted(self._live(), key=lambda e: e.started_at or _EPOCH):
            if len(claimed) >= limit:
                break
            if row.status != ExecutionStatus.RUNNING:
                continue
            if row.claimed_until is not None and row.claimed_until >= now:
                continue
            due = any(
                s.status == StepStatus.PENDING and s.due_at is not None and s.due_at <= now
                for s in row.steps
            )
            if not due:
                continue
            row.claimed_by = worker_id
            row.claimed_until = lease_until
            claimed.append(copy.deepcopy(row))
        return claimed


class RecordingGateway:
    """ICrmGateway that records every call.

    failures maps an operation name to how many of its next calls raise
    RuntimeError before it starts succeeding.
    """

    def __init__(self, failures: dict[str, int] | None = None) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures = dict(failures or {})

    def _record(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        self.calls.append((operation, kwargs))
        if self.failures.get(operation, 0) > 0:
            self.failures[operation] -= 1
            raise RuntimeError(f"{operation} unavailable")
        return {"operation": operation, "contactId": kwargs.get("contact_id")}

    def operations(self) -> list[str]:
        return [op for op, _ in self.calls]

    async def send_email(self, contact_id, template_id, variables=None, to=None):
        return self._record(
            "send_email", contact_id=contact_id, template_id=template_id, variables=variables, to=to
        )

    async def send_whatsapp(self, contact_id, parameters):
        return self._record("send_whatsapp", contact_id=contact_id, parameters=parameters)

    async def create_task(
        self, contact_id, title, assigned_to_id, priority, description=None, due_date=None
    ):
        return self._record(
            "create_task",
            contact_id=contact_id,
            title=title,
            assigned_to_id=assigned_to_id,
            priority=priority,
            description=description,
            due_date=due_date,
        )

    async def schedule_call(self, contact_id, title, scheduled_date, duration, description=None):
        return self._record(
            "schedule_call",
            contact_id=contact_id,
            title=title,
            scheduled_date=scheduled_date,
            duration=duration,
        )

    async def add_tags(self, contact_id, tags):
        return self._record("add_tags", contact_id=contact_id, tags=tags)

    async def update_status(self, contact_id, status, reason=None):
        return self._record("update_status", contact_id=contact_id, status=status, reason=reason)

    async def assign_agent(self, contact_id, agent_id):
        return self._record("assign_agent", contact_id=contact_id, agent_id=agent_id)

    async def generate_quote(self, contact_id, parameters):
        return self._record("generate_quote", contact_id=contact_id, parameters=parameters)
