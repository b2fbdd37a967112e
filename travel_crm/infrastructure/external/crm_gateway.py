"""Default CRM gateway: records each outbound operation in the log.

Delivery (mail provider, WhatsApp, calendar, contact store) lives in other
services; this adapter implements ICrmGateway so automations run end to
end and returns a receipt per call.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from travel_crm.shared.telemetry.logging import get_logger
from travel_crm.shared.utils.datetime import utc_now
from travel_crm.shared.utils.generators import generate_uuid

logger = get_logger(__name__)


def _receipt(operation: str, contact_id: str | None, **fields: Any) -> dict[str, Any]:
    return {
        "operation": operation,
        "reference": generate_uuid(),
        "contactId": contact_id,
        "recordedAt": utc_now().isoformat(),
        **fields,
    }


class LoggingCrmGateway:
    """ICrmGateway that logs operations instead of calling external systems."""

    async def send_email(
        self,
        contact_id: str | None,
        template_id: str,
        variables: dict[str, Any] | None = None,
        to: list[str] | None = None,
    ) -> dict[str, Any]:
        logger.info(
            "Email queued: template=%s contact=%s recipients=%s",
            template_id,
            contact_id,
            to or "<contact>",
        )
        return _receipt(
            "send_email",
            contact_id,
            templateId=template_id,
            recipients=to or [],
            variables=variables or {},
        )

    async def send_whatsapp(self, contact_id: str, parameters: dict[str, Any]) -> dict[str, Any]:
        logger.info("WhatsApp message queued: contact=%s", contact_id)
        return _receipt("send_whatsapp", contact_id, parameters=parameters)

    async def create_task(
        self,
        contact_id: str | None,
        title: str,
        assigned_to_id: str,
        priority: str,
        description: str | None = None,
        due_date: datetime | None = None,
    ) -> dict[str, Any]:
        task_id = generate_uuid()
        logger.info(
            "Task created: %s '%s' assigned_to=%s priority=%s contact=%s",
            task_id,
            title,
            assigned_to_id,
            priority,
            contact_id,
        )
        return _receipt(
            "create_task",
            contact_id,
            taskId=task_id,
            assignedToId=assigned_to_id,
            priority=priority,
            dueDate=due_date.isoformat() if due_date else None,
        )

    async def schedule_call(
        self,
        contact_id: str,
        title: str,
        scheduled_date: datetime,
        duration: int,
        description: str | None = None,
    ) -> dict[str, Any]:
        logger.info(
            "Call scheduled: contact=%s at=%s duration=%dmin",
            contact_id,
            scheduled_date.isoformat(),
            duration,
        )
        return _receipt(
            "schedule_call",
            contact_id,
            title=title,
            scheduledDate=scheduled_date.isoformat(),
            duration=duration,
        )

    async def add_tags(self, contact_id: str, tags: list[str]) -> dict[str, Any]:
        logger.info("Tags added: contact=%s tags=%s", contact_id, tags)
        return _receipt("add_tags", contact_id, addedTags=list(tags))

    async def update_status(
        self, contact_id: str, status: str, reason: str | None = None
    ) -> dict[str, Any]:
        logger.info("Contact status changed: contact=%s status=%s", contact_id, status)
        return _receipt("update_status", contact_id, newStatus=status, reason=reason)

    async def assign_agent(self, contact_id: str, agent_id: str) -> dict[str, Any]:
        logger.info("Agent assigned: contact=%s agent=%s", contact_id, agent_id)
        return _receipt("assign_agent", contact_id, assignedAgentId=agent_id)

    async def generate_quote(self, contact_id: str, parameters: dict[str, Any]) -> dict[str, Any]:
        logger.info("Quote requested: contact=%s", contact_id)
        return _receipt("generate_quote", contact_id, parameters=parameters)
