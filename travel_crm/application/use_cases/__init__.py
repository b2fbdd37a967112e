"""Application use cases: one entry point per workflow."""

from travel_crm.application.use_cases.automations import AutomationService

__all__ = ["AutomationService"]
