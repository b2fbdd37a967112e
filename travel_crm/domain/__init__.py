"""Domain layer: entities, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from travel_crm.domain.entities import (
    AutomationActionEntity,
    AutomationEntity,
    ExecutionEntity,
    ExecutionStepEntity,
)
from travel_crm.domain.enums import (
    ActionType,
    BudgetRange,
    ContactSource,
    ContactStatus,
    ExecutionStatus,
    StepStatus,
    TaskPriority,
    TriggerType,
)
from travel_crm.domain.exceptions import (
    AutomationInactiveException,
    CrmException,
    ExecutionStateException,
    FieldError,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    UnknownActionTypeException,
    ValidationException,
)

__all__ = [
    # Entities
    "AutomationActionEntity",
    "AutomationEntity",
    "ExecutionEntity",
    "ExecutionStepEntity",
    # Enums
    "ActionType",
    "BudgetRange",
    "ContactSource",
    "ContactStatus",
    "ExecutionStatus",
    "StepStatus",
    "TaskPriority",
    "TriggerType",
    # Exceptions
    "AutomationInactiveException",
    "CrmException",
    "ExecutionStateException",
    "FieldError",
    "ResourceNotFoundException",
    "SqlNotConfiguredException",
    "UnknownActionTypeException",
    "ValidationException",
]
