"""Persistence models: ORM entities and mixins."""

from travel_crm.infrastructure.persistence.models.automation import (
    Automation,
    AutomationAction,
    AutomationExecution,
    ExecutionStep,
)
from travel_crm.infrastructure.persistence.models.mixins import (
    TimestampMixin,
    UuidMixin,
)

__all__ = [
    "Automation",
    "AutomationAction",
    "AutomationExecution",
    "ExecutionStep",
    "TimestampMixin",
    "UuidMixin",
]
