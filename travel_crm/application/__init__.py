"""Application layer: interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, engine, CRM gateway).
"""

from travel_crm.application.interfaces import (
    IActionDispatcher,
    IAutomationEngine,
    IAutomationRepository,
    ICrmGateway,
    IExecutionRepository,
)
from travel_crm.application.use_cases import AutomationService

__all__ = [
    "AutomationService",
    "IActionDispatcher",
    "IAutomationEngine",
    "IAutomationRepository",
    "ICrmGateway",
    "IExecutionRepository",
]
