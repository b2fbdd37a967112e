"""Automation definition validation.

Two layers:

* validate_automation_definition: the base shape (name, trigger type,
  1..10 actions with order >= 1, ...). triggerConditions and parameters
  only have to be maps here.
* normalize_definition: the deeper step. Runs the per-trigger condition
  schema and every action's parameter schema, collecting all violations
  before raising so callers see the full list at once.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, overload

from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from travel_crm.application.services.action_parameters import validate_action_parameters
from travel_crm.application.services.field_errors import (
    field_errors_from,
    prefix_field_errors,
)
from travel_crm.application.services.trigger_conditions import validate_trigger_conditions
from travel_crm.domain.entities import AutomationActionEntity
from travel_crm.domain.enums import TriggerType
from travel_crm.domain.exceptions import FieldError, ValidationException
from travel_crm.schemas.automation import (
    AutomationActionInput,
    AutomationCreateRequest,
    AutomationUpdateRequest,
)


@overload
def validate_automation_definition(
    payload: Mapping[str, Any], *, partial: Literal[False] = ...
) -> AutomationCreateRequest: ...


@overload
def validate_automation_definition(
    payload: Mapping[str, Any], *, partial: Literal[True]
) -> AutomationUpdateRequest: ...


def validate_automation_definition(
    payload: Mapping[str, Any], *, partial: bool = False
) -> AutomationCreateRequest | AutomationUpdateRequest:
    """Parse a raw automation payload (create, or partial update when partial=True).

    Raises:
        ValidationException: With field-addressed errors for every violation.
    """
    model = AutomationUpdateRequest if partial else AutomationCreateRequest
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ValidationException(
            "Invalid automation definition", errors=field_errors_from(e)
        ) from e


@dataclass(frozen=True)
class NormalizedDefinition:
    """Trigger conditions and actions after per-type coercion (JSON-safe)."""

    trigger_conditions: dict[str, Any]
    actions: list[AutomationActionEntity]


def to_action_entities(
    actions: Sequence[AutomationActionInput],
) -> list[AutomationActionEntity]:
    """Map validated action inputs to entities without touching parameters."""
    return [
        AutomationActionEntity(
            action_type=a.type,
            parameters=dict(a.parameters),
            order=a.order,
            delay_minutes=a.delay_minutes,
        )
        for a in actions
    ]


def normalize_trigger_conditions(
    trigger_type: TriggerType, trigger_conditions: Mapping[str, Any]
) -> dict[str, Any]:
    """Apply the trigger's condition schema alone (partial updates that keep the actions).

    Raises:
        ValidationException: With paths like 'triggerConditions.days'.
    """
    try:
        conditions = validate_trigger_conditions(trigger_type, trigger_conditions)
    except ValidationException as e:
        raise ValidationException(
            "Invalid automation definition",
            errors=prefix_field_errors(e.errors, "triggerConditions"),
        ) from e
    return to_jsonable_python(conditions)


def normalize_definition(
    trigger_type: TriggerType,
    trigger_conditions: Mapping[str, Any],
    actions: Sequence[AutomationActionInput],
) -> NormalizedDefinition:
    """Apply per-trigger and per-action schemas; return coerced, JSON-safe values.

    Raises:
        ValidationException: Listing every failing field across the trigger
            conditions and all actions (paths like 'actions.1.parameters.title').
    """
    errors: list[FieldError] = []
    conditions: dict[str, Any] = {}
    try:
        conditions = validate_trigger_conditions(trigger_type, trigger_conditions)
    except ValidationException as e:
        errors.extend(prefix_field_errors(e.errors, "triggerConditions"))

    entities: list[AutomationActionEntity] = []
    for index, action in enumerate(actions):
        try:
            params = validate_action_parameters(action.type, action.parameters)
        except ValidationException as e:
            errors.extend(prefix_field_errors(e.errors, f"actions.{index}.parameters"))
            continue
        entities.append(
            AutomationActionEntity(
                action_type=action.type,
                parameters=to_jsonable_python(params),
                order=action.order,
                delay_minutes=action.delay_minutes,
            )
        )

    if errors:
        raise ValidationException("Invalid automation definition", errors=errors)
    return NormalizedDefinition(
        trigger_conditions=to_jsonable_python(conditions),
        actions=entities,
    )
