"""Application ports: repository and service protocols."""

from travel_crm.application.interfaces.repositories import (
    IAutomationRepository,
    IExecutionRepository,
)
from travel_crm.application.interfaces.services import (
    IActionDispatcher,
    IAutomationEngine,
    ICrmGateway,
)

__all__ = [
    "IActionDispatcher",
    "IAutomationEngine",
    "IAutomationRepository",
    "ICrmGateway",
    "IExecutionRepository",
]
