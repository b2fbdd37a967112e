"""Application services: rule validators, scheduling, trigger matching, templates."""

from travel_crm.application.services.action_parameters import (
    ACTION_PARAMETER_SCHEMAS,
    validate_action_parameters,
)
from travel_crm.application.services.automation_templates import (
    action_templates,
    trigger_templates,
)
from travel_crm.application.services.automation_validator import (
    NormalizedDefinition,
    normalize_definition,
    normalize_trigger_conditions,
    validate_automation_definition,
)
from travel_crm.application.services.scheduling import (
    PlannedStep,
    next_due_at,
    plan_action_schedule,
)
from travel_crm.application.services.trigger_conditions import (
    TRIGGER_CONDITION_SCHEMAS,
    validate_trigger_conditions,
)
from travel_crm.application.services.trigger_matching import matches_trigger

__all__ = [
    "ACTION_PARAMETER_SCHEMAS",
    "NormalizedDefinition",
    "PlannedStep",
    "TRIGGER_CONDITION_SCHEMAS",
    "action_templates",
    "matches_trigger",
    "next_due_at",
    "normalize_definition",
    "normalize_trigger_conditions",
    "plan_action_schedule",
    "trigger_templates",
    "validate_action_parameters",
    "validate_automation_definition",
    "validate_trigger_conditions",
]
