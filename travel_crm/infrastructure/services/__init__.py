"""Infrastructure implementations of application service interfaces."""

from travel_crm.infrastructure.services.action_handlers import ActionDispatcher
from travel_crm.infrastructure.services.automation_engine import AutomationEngine
from travel_crm.infrastructure.services.step_worker import ScheduledStepWorker

__all__ = ["ActionDispatcher", "AutomationEngine", "ScheduledStepWorker"]
