"""Per-trigger condition schemas and the trigger condition validator.

Each trigger type with a known shape has a pydantic model; the registry maps
the trigger type to it. Trigger types without a model (SEASONAL_OPPORTUNITY,
CUSTOM, TRIP_QUOTE_REQUESTED, or any unrecognised string) accept any map
unchanged. Unknown keys are dropped, never rejected. Numbers and booleans
must arrive as JSON numbers and booleans: "3" or "yes" are rejected, not
coerced.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from travel_crm.application.services.field_errors import field_errors_from
from travel_crm.domain.enums import BudgetRange, ContactSource, ContactStatus, TriggerType
from travel_crm.domain.exceptions import ValidationException


class TriggerConditions(BaseModel):
    """Base for condition models: camelCase keys, extra keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        use_enum_values=True,
    )


class ContactCreatedConditions(TriggerConditions):
    status: ContactStatus | None = None
    source: ContactSource | None = None
    budget_range: BudgetRange | None = None
    tags: list[str] | None = None


class NoActivityConditions(TriggerConditions):
    days: int = Field(..., ge=1, le=365, strict=True)
    status: ContactStatus | None = None
    exclude_tags: list[str] | None = None


class PaymentOverdueConditions(TriggerConditions):
    days_overdue: int = Field(..., ge=1, le=365, strict=True)
    min_amount: float | None = Field(default=None, ge=0, strict=True)
    max_amount: float | None = Field(default=None, ge=0, strict=True)


class TripCompletedConditions(TriggerConditions):
    destination: str | None = None
    min_rating: float | None = Field(default=None, ge=1, le=5, strict=True)
    days_after_return: int = Field(default=1, ge=0, le=30, strict=True)


class BirthdayConditions(TriggerConditions):
    days_before: int = Field(default=0, ge=0, le=30, strict=True)
    status: ContactStatus | None = None
    include_inactive: bool = Field(default=False, strict=True)


TRIGGER_CONDITION_SCHEMAS: Mapping[TriggerType, type[TriggerConditions]] = MappingProxyType(
    {
        TriggerType.CONTACT_CREATED: ContactCreatedConditions,
        TriggerType.NO_ACTIVITY_30_DAYS: NoActivityConditions,
        TriggerType.PAYMENT_OVERDUE: PaymentOverdueConditions,
        TriggerType.TRIP_COMPLETED: TripCompletedConditions,
        TriggerType.BIRTHDAY: BirthdayConditions,
    }
)


def get_condition_schema(trigger_type: TriggerType | str) -> type[TriggerConditions] | None:
    """Return the condition model for trigger_type, or None when the shape is free-form."""
    try:
        key = TriggerType(trigger_type)
    except ValueError:
        return None
    return TRIGGER_CONDITION_SCHEMAS.get(key)


def validate_trigger_conditions(
    trigger_type: TriggerType | str, conditions: Any
) -> dict[str, Any]:
    """Validate and coerce conditions for trigger_type.

    Returns the coerced object with declared defaults applied and optional
    fields that were not supplied omitted. Free-form triggers get a shallow
    copy of the map back.

    Raises:
        ValidationException: With every failing field, when conditions do not
            satisfy the trigger's schema or are not a map at all.
    """
    schema = get_condition_schema(trigger_type)
    label = getattr(trigger_type, "value", trigger_type)
    if schema is None:
        if not isinstance(conditions, Mapping):
            raise ValidationException(
                f"Invalid conditions for trigger {label}",
                errors=[{"field": "<root>", "message": "Input should be a valid dictionary"}],
            )
        return dict(conditions)
    try:
        parsed = schema.model_validate(conditions)
    except ValidationError as e:
        raise ValidationException(
            f"Invalid conditions for trigger {label}",
            errors=field_errors_from(e),
        ) from e
    return parsed.model_dump(by_alias=True, exclude_none=True)
