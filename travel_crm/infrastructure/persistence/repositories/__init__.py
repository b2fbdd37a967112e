"""Persistence repositories. Re-exports for dependency injection."""

from travel_crm.infrastructure.persistence.repositories.automation_repo import (
    AutomationRepository,
)
from travel_crm.infrastructure.persistence.repositories.base import BaseRepository
from travel_crm.infrastructure.persistence.repositories.execution_repo import (
    ExecutionRepository,
)

__all__ = ["AutomationRepository", "BaseRepository", "ExecutionRepository"]
