"""Service interfaces (ports) for the application layer.

Protocols define contracts for the execution engine and outbound CRM
integrations (DIP).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from travel_crm.domain.entities import AutomationEntity, ExecutionEntity
    from travel_crm.domain.enums import ActionType


# Automation engine interface
class IAutomationEngine(Protocol):
    """Protocol for starting and steering executions of an automation."""

    async def start_execution(
        self,
        automation: AutomationEntity,
        trigger_data: dict[str, Any],
        idempotency_key: str | None = None,
    ) -> ExecutionEntity:
        """Create an execution, run every step already due, and queue the rest."""

    async def pause_execution(self, execution_id: str) -> ExecutionEntity:
        """Stop a pending/running execution from advancing."""

    async def resume_execution(self, execution_id: str) -> ExecutionEntity:
        """Continue a paused execution; its next step becomes due after its delay from now."""

    async def cancel_execution(self, execution_id: str) -> ExecutionEntity:
        """Drop queued steps and fail a non-terminal execution."""


# Action dispatcher interface
class IActionDispatcher(Protocol):
    """Protocol for performing one action step."""

    async def dispatch(
        self,
        action_type: ActionType,
        parameters: dict[str, Any],
        trigger_data: dict[str, Any],
    ) -> dict[str, Any]:
        """Run the action and return its result (JSON-safe)."""


# CRM gateway interface
class ICrmGateway(Protocol):
    """Protocol for the CRM operations automation actions perform."""

    async def send_email(
        self,
        contact_id: str | None,
        template_id: str,
        variables: dict[str, Any] | None = None,
        to: list[str] | None = None,
    ) -> dict[str, Any]:
        """Send a templated email to the contact (or explicit recipients)."""

    async def send_whatsapp(self, contact_id: str, parameters: dict[str, Any]) -> dict[str, Any]:
        """Send a WhatsApp message to the contact."""

    async def create_task(
        self,
        contact_id: str | None,
        title: str,
        assigned_to_id: str,
        priority: str,
        description: str | None = None,
        due_date: datetime | None = None,
    ) -> dict[str, Any]:
        """Create an agent task, linked to the contact when given."""

    async def schedule_call(
        self,
        contact_id: str,
        title: str,
        scheduled_date: datetime,
        duration: int,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Put a follow-up call with the contact on the calendar."""

    async def add_tags(self, contact_id: str, tags: list[str]) -> dict[str, Any]:
        """Add tags to the contact (existing tags are kept)."""

    async def update_status(
        self, contact_id: str, status: str, reason: str | None = None
    ) -> dict[str, Any]:
        """Move the contact to another funnel stage."""

    async def assign_agent(self, contact_id: str, agent_id: str) -> dict[str, Any]:
        """Make agent_id the contact's assigned agent."""

    async def generate_quote(self, contact_id: str, parameters: dict[str, Any]) -> dict[str, Any]:
        """Request a trip quote for the contact."""
