"""Matching business events against automation trigger conditions.

Conditions are the stored (already normalized) triggerConditions map; event
data is the camelCase snapshot of the business event (contact, payment,
trip, ...). A condition that is absent places no restriction.
"""

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from travel_crm.domain.enums import TriggerType
from travel_crm.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

Matcher = Callable[[Mapping[str, Any], Mapping[str, Any]], bool]


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _equals_if_set(conditions: Mapping[str, Any], event: Mapping[str, Any], key: str) -> bool:
    expected = conditions.get(key)
    return expected is None or event.get(key) == expected


def _at_least(actual: Any, minimum: Any) -> bool:
    actual_n, minimum_n = _number(actual), _number(minimum)
    return actual_n is not None and minimum_n is not None and actual_n >= minimum_n


def _tag_set(value: Any) -> set[str]:
    if isinstance(value, str):
        return {value}
    if isinstance(value, (list, tuple, set, frozenset)):
        return {str(t) for t in value}
    return set()


def _match_contact_created(conditions: Mapping[str, Any], event: Mapping[str, Any]) -> bool:
    if not all(_equals_if_set(conditions, event, k) for k in ("status", "source", "budgetRange")):
        return False
    return _tag_set(conditions.get("tags")) <= _tag_set(event.get("tags"))


def _match_no_activity(conditions: Mapping[str, Any], event: Mapping[str, Any]) -> bool:
    if not _at_least(event.get("daysInactive"), conditions.get("days")):
        return False
    if not _equals_if_set(conditions, event, "status"):
        return False
    return not (_tag_set(conditions.get("excludeTags")) & _tag_set(event.get("tags")))


def _match_payment_overdue(conditions: Mapping[str, Any], event: Mapping[str, Any]) -> bool:
    if not _at_least(event.get("daysOverdue"), conditions.get("daysOverdue")):
        return False
    amount = _number(event.get("amount"))
    min_amount = _number(conditions.get("minAmount"))
    max_amount = _number(conditions.get("maxAmount"))
    if min_amount is not None and (amount is None or amount < min_amount):
        return False
    if max_amount is not None and (amount is None or amount > max_amount):
        return False
    return True


def _match_trip_completed(conditions: Mapping[str, Any], event: Mapping[str, Any]) -> bool:
    destination = conditions.get("destination")
    if destination is not None:
        actual = event.get("destination")
        if isinstance(destination, str) and isinstance(actual, str):
            if actual.strip().lower() != destination.strip().lower():
                return False
        elif actual != destination:
            # unnormalized conditions: plain equality
            return False
    if conditions.get("minRating") is not None and not _at_least(
        event.get("rating"), conditions["minRating"]
    ):
        return False
    return _at_least(event.get("daysSinceReturn"), conditions.get("daysAfterReturn", 1))


def _match_birthday(conditions: Mapping[str, Any], event: Mapping[str, Any]) -> bool:
    days_until = _number(event.get("daysUntilBirthday"))
    if days_until is None or days_until != _number(conditions.get("daysBefore", 0)):
        return False
    if not _equals_if_set(conditions, event, "status"):
        return False
    if not conditions.get("includeInactive", False) and event.get("isActive") is False:
        return False
    return True


def _match_flat_equality(conditions: Mapping[str, Any], event: Mapping[str, Any]) -> bool:
    return all(event.get(key) == expected for key, expected in conditions.items())


TRIGGER_MATCHERS: Mapping[TriggerType, Matcher] = MappingProxyType(
    {
        TriggerType.CONTACT_CREATED: _match_contact_created,
        TriggerType.NO_ACTIVITY_30_DAYS: _match_no_activity,
        TriggerType.PAYMENT_OVERDUE: _match_payment_overdue,
        TriggerType.TRIP_COMPLETED: _match_trip_completed,
        TriggerType.BIRTHDAY: _match_birthday,
    }
)


def matches_trigger(
    trigger_type: TriggerType,
    conditions: Mapping[str, Any] | None,
    event_data: Mapping[str, Any],
) -> bool:
    """Return whether event_data satisfies the automation's trigger conditions.

    Trigger types without a dedicated matcher compare every condition key
    for equality with the event value.
    """
    matcher = TRIGGER_MATCHERS.get(trigger_type, _match_flat_equality)
    matched = matcher(conditions or {}, event_data)
    logger.debug("Trigger %s conditions=%s matched=%s", trigger_type.value, conditions, matched)
    return matched
