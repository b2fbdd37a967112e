"""Tests for the per-trigger condition validator."""

import pytest

from travel_crm.application.services.trigger_conditions import (
    get_condition_schema,
    validate_trigger_conditions,
)
from travel_crm.domain.enums import TriggerType
from travel_crm.domain.exceptions import ValidationException


def _fields(exc: ValidationException) -> set[str]:
    return {e["field"] for e in exc.errors}


def test_no_activity_requires_days_in_range() -> None:
    """NO_ACTIVITY_30_DAYS accepts days 1..365 and rejects 0."""
    assert validate_trigger_conditions(TriggerType.NO_ACTIVITY_30_DAYS, {"days": 30}) == {
        "days": 30
    }
    with pytest.raises(ValidationException) as exc_info:
        validate_trigger_conditions(TriggerType.NO_ACTIVITY_30_DAYS, {"days": 0})
    assert exc_info.value.error_code == "VALIDATION_ERROR"
    assert _fields(exc_info.value) == {"days"}


def test_no_activity_missing_days_is_reported() -> None:
    with pytest.raises(ValidationException) as exc_info:
        validate_trigger_conditions(TriggerType.NO_ACTIVITY_30_DAYS, {})
    assert _fields(exc_info.value) == {"days"}


def test_defaults_are_applied_and_unset_optionals_omitted() -> None:
    """BIRTHDAY and TRIP_COMPLETED fill declared defaults only."""
    assert validate_trigger_conditions(TriggerType.BIRTHDAY, {}) == {
        "daysBefore": 0,
        "includeInactive": False,
    }
    assert validate_trigger_conditions(TriggerType.TRIP_COMPLETED, {}) == {
        "daysAfterReturn": 1
    }


def test_unknown_keys_are_dropped() -> None:
    result = validate_trigger_conditions(
        TriggerType.CONTACT_CREATED, {"status": "CLIENTE", "favouriteColour": "blue"}
    )
    assert result == {"status": "CLIENTE"}


def test_enum_values_are_checked() -> None:
    with pytest.raises(ValidationException) as exc_info:
        validate_trigger_conditions(TriggerType.CONTACT_CREATED, {"budgetRange": "HUGE"})
    assert _fields(exc_info.value) == {"budgetRange"}


def test_numbers_are_not_coerced_from_strings() -> None:
    with pytest.raises(ValidationException) as exc_info:
        validate_trigger_conditions(TriggerType.PAYMENT_OVERDUE, {"daysOverdue": "5"})
    assert _fields(exc_info.value) == {"daysOverdue"}


@pytest.mark.parametrize(
    ("trigger_type", "conditions", "fields"),
    [
        (TriggerType.BIRTHDAY, {"includeInactive": "yes", "daysBefore": "3"}, {"includeInactive", "daysBefore"}),
        (TriggerType.NO_ACTIVITY_30_DAYS, {"days": True}, {"days"}),
        (TriggerType.TRIP_COMPLETED, {"minRating": "4.5"}, {"minRating"}),
    ],
)
def test_strings_and_booleans_are_not_coerced(
    trigger_type: TriggerType, conditions: dict, fields: set[str]
) -> None:
    with pytest.raises(ValidationException) as exc_info:
        validate_trigger_conditions(trigger_type, conditions)
    assert _fields(exc_info.value) == fields


def test_integer_amounts_are_accepted_as_numbers() -> None:
    result = validate_trigger_conditions(
        TriggerType.PAYMENT_OVERDUE, {"daysOverdue": 5, "minAmount": 100, "maxAmount": 250.5}
    )
    assert result == {"daysOverdue": 5, "minAmount": 100, "maxAmount": 250.5}


def test_every_violation_is_collected() -> None:
    """All failing fields are reported at once, not only the first."""
    with pytest.raises(ValidationException) as exc_info:
        validate_trigger_conditions(
            TriggerType.PAYMENT_OVERDUE, {"daysOverdue": 0, "minAmount": -1}
        )
    assert _fields(exc_info.value) == {"daysOverdue", "minAmount"}


@pytest.mark.parametrize(
    "trigger_type",
    [TriggerType.CUSTOM, TriggerType.SEASONAL_OPPORTUNITY, TriggerType.TRIP_QUOTE_REQUESTED],
)
def test_free_form_triggers_accept_any_map(trigger_type: TriggerType) -> None:
    conditions = {"season": "summer", "nested": {"a": 1}}
    result = validate_trigger_conditions(trigger_type, conditions)
    assert result == conditions
    assert result is not conditions


def test_unrecognised_trigger_string_is_free_form() -> None:
    assert get_condition_schema("NOT_A_TRIGGER") is None
    assert validate_trigger_conditions("NOT_A_TRIGGER", {"x": 1}) == {"x": 1}


def test_free_form_trigger_still_requires_a_map() -> None:
    with pytest.raises(ValidationException) as exc_info:
        validate_trigger_conditions(TriggerType.CUSTOM, ["not", "a", "map"])
    assert _fields(exc_info.value) == {"<root>"}
