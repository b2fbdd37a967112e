"""Per-action parameter schemas and the action parameter validator.

Unlike triggers, action types are strict: a type outside the closed
ActionType set is rejected outright with UnknownActionTypeException before
any parameter is looked at. GENERATE_QUOTE and SEND_WHATSAPP are known types
without a declared shape and accept any map.
"""

from collections.abc import Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Annotated, Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PlainSerializer,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from travel_crm.application.services.field_errors import field_errors_from
from travel_crm.domain.enums import ActionType, ContactStatus, TaskPriority
from travel_crm.domain.exceptions import UnknownActionTypeException, ValidationException

# Accepts any UUID version; dumped back as its canonical string.
UuidStr = Annotated[UUID, PlainSerializer(str, return_type=str)]
NonEmptyStr = Annotated[str, Field(min_length=1)]


class ActionParameters(BaseModel):
    """Base for parameter models: camelCase keys, extra keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        use_enum_values=True,
    )


class SendEmailParameters(ActionParameters):
    template_id: UuidStr
    variables: dict[str, Any] | None = None
    # When omitted the engine sends to the triggering contact's own address.
    to: list[EmailStr] | None = None


class CreateTaskParameters(ActionParameters):
    title: NonEmptyStr
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to_id: UuidStr
    due_date: datetime | None = None


class AddTagParameters(ActionParameters):
    tags: list[NonEmptyStr] = Field(..., min_length=1)


class UpdateStatusParameters(ActionParameters):
    status: ContactStatus
    reason: str | None = None


class AssignAgentParameters(ActionParameters):
    agent_id: UuidStr


class ScheduleCallParameters(ActionParameters):
    title: NonEmptyStr
    scheduled_date: datetime
    duration: int = Field(default=30, ge=5, le=480, strict=True)
    description: str | None = None


ACTION_PARAMETER_SCHEMAS: Mapping[ActionType, type[ActionParameters]] = MappingProxyType(
    {
        ActionType.SEND_EMAIL: SendEmailParameters,
        ActionType.CREATE_TASK: CreateTaskParameters,
        ActionType.ADD_TAG: AddTagParameters,
        ActionType.UPDATE_STATUS: UpdateStatusParameters,
        ActionType.ASSIGN_AGENT: AssignAgentParameters,
        ActionType.SCHEDULE_CALL: ScheduleCallParameters,
    }
)


def resolve_action_type(action_type: ActionType | str) -> ActionType:
    """Return the ActionType for a raw tag.

    Raises:
        UnknownActionTypeException: If action_type is not in the closed set.
    """
    try:
        return ActionType(action_type)
    except ValueError:
        raise UnknownActionTypeException(str(action_type)) from None


def validate_action_parameters(
    action_type: ActionType | str, parameters: Any
) -> dict[str, Any]:
    """Validate and coerce parameters for action_type.

    Dates are coerced to datetime (ISO strings accepted), numbers are strict,
    IDs checked as UUIDs (returned as strings),
    declared defaults applied, unsupplied optional fields omitted.

    Raises:
        UnknownActionTypeException: If action_type is not a known ActionType.
        ValidationException: With every failing field when parameters do not
            satisfy the action's schema.
    """
    resolved = resolve_action_type(action_type)
    schema = ACTION_PARAMETER_SCHEMAS.get(resolved)
    if schema is None:
        if not isinstance(parameters, Mapping):
            raise ValidationException(
                f"Invalid parameters for action {resolved.value}",
                errors=[{"field": "<root>", "message": "Input should be a valid dictionary"}],
            )
        return dict(parameters)
    try:
        parsed = schema.model_validate(parameters)
    except ValidationError as e:
        raise ValidationException(
            f"Invalid parameters for action {resolved.value}",
            errors=field_errors_from(e),
        ) from e
    return parsed.model_dump(by_alias=True, exclude_none=True)
