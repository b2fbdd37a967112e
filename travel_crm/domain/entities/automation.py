"""Automation domain entity.

An automation is a definition: one trigger (type + conditions) and an
ordered list of actions. Actions have no lifecycle of their own; they are
replaced as a whole whenever the automation is updated.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from travel_crm.domain.enums import ActionType, TriggerType


@dataclass
class AutomationActionEntity:
    """One step of an automation (type, parameters, delay, position)."""

    action_type: ActionType
    parameters: dict[str, Any]
    order: int
    delay_minutes: int = 0
    id: str | None = None


@dataclass
class AutomationEntity:
    """Domain entity for an automation definition (trigger + actions)."""

    id: str
    name: str
    trigger_type: TriggerType
    trigger_conditions: dict[str, Any]
    actions: list[AutomationActionEntity] = field(default_factory=list)
    description: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def ordered_actions(self) -> list[AutomationActionEntity]:
        """Return actions ascending by order; equal orders keep list position."""
        return sorted(self.actions, key=lambda a: a.order)

    def can_trigger_on(self, trigger_type: TriggerType) -> bool:
        """Return whether this automation is active and listens to trigger_type."""
        return self.is_active and self.trigger_type == trigger_type
