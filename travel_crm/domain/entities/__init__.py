"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from travel_crm.domain.entities.automation import AutomationActionEntity, AutomationEntity
from travel_crm.domain.entities.execution import ExecutionEntity, ExecutionStepEntity

__all__ = [
    "AutomationActionEntity",
    "AutomationEntity",
    "ExecutionEntity",
    "ExecutionStepEntity",
]
