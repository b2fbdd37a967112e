"""Action dispatcher: performs one automation action through the CRM gateway.

Parameters are re-validated at run time (the automation may predate a
schema change, or strict validation may have been off), so a step never
reaches the gateway with a malformed payload.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pydantic_core import to_jsonable_python

from travel_crm.application.services.action_parameters import validate_action_parameters
from travel_crm.domain.enums import ActionType
from travel_crm.domain.exceptions import UnknownActionTypeException, ValidationException

if TYPE_CHECKING:
    from travel_crm.application.interfaces.services import ICrmGateway

Handler = Callable[[dict[str, Any], dict[str, Any]], Awaitable[dict[str, Any]]]


def _contact_id(trigger_data: dict[str, Any], action_type: ActionType) -> str:
    contact_id = trigger_data.get("contactId")
    if not contact_id:
        raise ValidationException(
            f"Contact ID required for {action_type.value} action",
            field="triggerData.contactId",
        )
    return str(contact_id)


class ActionDispatcher:
    """Implements IActionDispatcher: one handler per ActionType."""

    def __init__(self, gateway: ICrmGateway) -> None:
        self.gateway = gateway
        self._handlers: dict[ActionType, Handler] = {
            ActionType.SEND_EMAIL: self._send_email,
            ActionType.SEND_WHATSAPP: self._send_whatsapp,
            ActionType.CREATE_TASK: self._create_task,
            ActionType.SCHEDULE_CALL: self._schedule_call,
            ActionType.ADD_TAG: self._add_tag,
            ActionType.UPDATE_STATUS: self._update_status,
            ActionType.ASSIGN_AGENT: self._assign_agent,
            ActionType.GENERATE_QUOTE: self._generate_quote,
        }

    async def dispatch(
        self,
        action_type: ActionType,
        parameters: dict[str, Any],
        trigger_data: dict[str, Any],
    ) -> dict[str, Any]:
        """Validate parameters, run the action, and return a JSON-safe result.

        Raises:
            UnknownActionTypeException: If no handler exists for action_type.
            ValidationException: If parameters or required trigger data are invalid.
        """
        params = validate_action_parameters(action_type, parameters)
        handler = self._handlers.get(ActionType(action_type))
        if handler is None:
            raise UnknownActionTypeException(str(action_type))
        result = await handler(params, trigger_data)
        return to_jsonable_python(result)

    async def _send_email(self, params: dict[str, Any], trigger_data: dict[str, Any]) -> dict[str, Any]:
        to = params.get("to")
        contact_id = trigger_data.get("contactId")
        if not to:
            contact_id = _contact_id(trigger_data, ActionType.SEND_EMAIL)
        return await self.gateway.send_email(
            contact_id,
            params["templateId"],
            variables=params.get("variables"),
            to=to,
        )

    async def _send_whatsapp(self, params: dict[str, Any], trigger_data: dict[str, Any]) -> dict[str, Any]:
        contact_id = _contact_id(trigger_data, ActionType.SEND_WHATSAPP)
        return await self.gateway.send_whatsapp(contact_id, params)

    async def _create_task(self, params: dict[str, Any], trigger_data: dict[str, Any]) -> dict[str, Any]:
        return await self.gateway.create_task(
            trigger_data.get("contactId"),
            params["title"],
            params["assignedToId"],
            params["priority"],
            description=params.get("description"),
            due_date=params.get("dueDate"),
        )

    async def _schedule_call(self, params: dict[str, Any], trigger_data: dict[str, Any]) -> dict[str, Any]:
        contact_id = _contact_id(trigger_data, ActionType.SCHEDULE_CALL)
        return await self.gateway.schedule_call(
            contact_id,
            params["title"],
            params["scheduledDate"],
            params["duration"],
            description=params.get("description"),
        )

    async def _add_tag(self, params: dict[str, Any], trigger_data: dict[str, Any]) -> dict[str, Any]:
        contact_id = _contact_id(trigger_data, ActionType.ADD_TAG)
        return await self.gateway.add_tags(contact_id, params["tags"])

    async def _update_status(self, params: dict[str, Any], trigger_data: dict[str, Any]) -> dict[str, Any]:
        contact_id = _contact_id(trigger_data, ActionType.UPDATE_STATUS)
        return await self.gateway.update_status(
            contact_id, params["status"], reason=params.get("reason")
        )

    async def _assign_agent(self, params: dict[str, Any], trigger_data: dict[str, Any]) -> dict[str, Any]:
        contact_id = _contact_id(trigger_data, ActionType.ASSIGN_AGENT)
        return await self.gateway.assign_agent(contact_id, params["agentId"])

    async def _generate_quote(self, params: dict[str, Any], trigger_data: dict[str, Any]) -> dict[str, Any]:
        contact_id = _contact_id(trigger_data, ActionType.GENERATE_QUOTE)
        return await self.gateway.generate_quote(contact_id, params)
