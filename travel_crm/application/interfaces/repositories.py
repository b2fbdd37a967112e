"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from travel_crm.domain.entities import AutomationEntity, ExecutionEntity
    from travel_crm.domain.enums import ExecutionStatus, TriggerType


# Automation repository interface
class IAutomationRepository(Protocol):
    """Protocol for automation definitions and their actions (DIP)."""

    async def create_automation(self, automation: AutomationEntity) -> AutomationEntity:
        """Persist a new automation with all of its actions."""

    async def get_by_id(self, automation_id: str) -> AutomationEntity | None:
        """Return automation (with actions) by ID."""

    async def list_automations(
        self,
        *,
        is_active: bool | None = None,
        trigger_type: TriggerType | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[AutomationEntity], int]:
        """Return one page of automations (newest first) and the total matching count."""

    async def update_automation(self, automation: AutomationEntity) -> AutomationEntity:
        """Persist scalar fields; actions are replaced as a whole list."""

    async def set_active(self, automation_id: str, is_active: bool) -> AutomationEntity | None:
        """Switch the automation on or off. Return None if not found."""

    async def delete_automation(self, automation_id: str) -> bool:
        """Delete automation with its actions and executions. Return False if not found."""

    async def get_active_by_trigger(self, trigger_type: TriggerType) -> list[AutomationEntity]:
        """Return active automations listening to trigger_type."""

    async def count_automations(self, is_active: bool | None = None) -> int:
        """Return number of automations, optionally only active/inactive ones."""


# Execution repository interface
class IExecutionRepository(Protocol):
    """Protocol for executions and their queued steps (DIP)."""

    async def create_execution(self, execution: ExecutionEntity) -> ExecutionEntity:
        """Persist a new execution with its steps.

        Returns the already stored execution when (automation_id, idempotency_key)
        is taken.
        """

    async def save_execution(self, execution: ExecutionEntity) -> ExecutionEntity:
        """Persist status, claim and every step of an existing execution."""

    async def get_by_id(self, execution_id: str) -> ExecutionEntity | None:
        """Return execution (with steps ordered) by ID."""

    async def get_for_update(self, execution_id: str) -> ExecutionEntity | None:
        """Return execution by ID, locked against concurrent writers until commit."""

    async def get_by_idempotency_key(
        self, automation_id: str, idempotency_key: str
    ) -> ExecutionEntity | None:
        """Return the execution started for automation with this key, if any."""

    async def list_by_automation(
        self, automation_id: str, skip: int = 0, limit: int = 50
    ) -> list[ExecutionEntity]:
        """Return executions of an automation (most recently started first)."""

    async def get_latest_for_automations(
        self, automation_ids: list[str], per_automation: int
    ) -> dict[str, list[ExecutionEntity]]:
        """Return up to per_automation latest executions per automation (batch)."""

    async def count_executions(
        self,
        *,
        since: datetime | None = None,
        status: ExecutionStatus | None = None,
    ) -> int:
        """Return number of executions, optionally started since a time / in a status."""

    async def list_recent_with_names(
        self, since: datetime, limit: int = 10
    ) -> list[tuple[ExecutionEntity, str]]:
        """Return executions started since a time with their automation's name (newest first)."""

    async def claim_due(
        self,
        worker_id: str,
        now: datetime,
        lease_until: datetime,
        limit: int,
    ) -> list[ExecutionEntity]:
        """Claim running executions whose next step is due and whose lease is free or expired."""
