"""Automation dependencies (composition root).

Builds repositories, the engine and AutomationService from infrastructure
implementations; routes depend only on these. Read routes get a plain
session (get_db); write routes get a transactional one (get_db_transactional)
shared by every repository of the request.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from travel_crm.application.interfaces.repositories import (
    IAutomationRepository,
    IExecutionRepository,
)
from travel_crm.application.interfaces.services import ICrmGateway
from travel_crm.application.use_cases.automations import AutomationService
from travel_crm.core.config import Settings, get_settings
from travel_crm.infrastructure.external.crm_gateway import LoggingCrmGateway
from travel_crm.infrastructure.persistence.database import get_db, get_db_transactional
from travel_crm.infrastructure.persistence.repositories import (
    AutomationRepository,
    ExecutionRepository,
)
from travel_crm.infrastructure.services.action_handlers import ActionDispatcher
from travel_crm.infrastructure.services.automation_engine import AutomationEngine


async def get_automation_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> IAutomationRepository:
    """Automation repository for read operations (list, get by id, stats)."""
    return AutomationRepository(db)


async def get_automation_repo_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> IAutomationRepository:
    """Automation repository for create/update/delete/execute (transactional)."""
    return AutomationRepository(db)


async def get_execution_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> IExecutionRepository:
    """Execution repository for read operations."""
    return ExecutionRepository(db)


async def get_execution_repo_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> IExecutionRepository:
    """Execution repository for runs and pause/resume/cancel (transactional)."""
    return ExecutionRepository(db)


def get_crm_gateway() -> ICrmGateway:
    """Outbound CRM adapter used by action steps."""
    return LoggingCrmGateway()


def _build_service(
    automation_repo: IAutomationRepository,
    execution_repo: IExecutionRepository,
    gateway: ICrmGateway,
    settings: Settings,
) -> AutomationService:
    engine = AutomationEngine.from_settings(
        execution_repo, ActionDispatcher(gateway), settings
    )
    return AutomationService(
        automation_repo,
        execution_repo,
        engine,
        strict_validation=settings.automation_strict_validation,
    )


async def get_automation_service(
    automation_repo: Annotated[IAutomationRepository, Depends(get_automation_repo)],
    execution_repo: Annotated[IExecutionRepository, Depends(get_execution_repo)],
    gateway: Annotated[ICrmGateway, Depends(get_crm_gateway)],
) -> AutomationService:
    """AutomationService for read-only routes."""
    return _build_service(automation_repo, execution_repo, gateway, get_settings())


async def get_automation_service_for_write(
    automation_repo: Annotated[IAutomationRepository, Depends(get_automation_repo_for_write)],
    execution_repo: Annotated[IExecutionRepository, Depends(get_execution_repo_for_write)],
    gateway: Annotated[ICrmGateway, Depends(get_crm_gateway)],
) -> AutomationService:
    """AutomationService for routes that write (one transaction per request)."""
    return _build_service(automation_repo, execution_repo, gateway, get_settings())
