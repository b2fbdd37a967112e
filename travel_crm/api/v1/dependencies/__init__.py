"""Presentation-layer dependency injection. Re-exports for routes and tests."""

from travel_crm.api.v1.dependencies.automation import (
    get_automation_repo,
    get_automation_repo_for_write,
    get_automation_service,
    get_automation_service_for_write,
    get_crm_gateway,
    get_execution_repo,
    get_execution_repo_for_write,
)

__all__ = [
    "get_automation_repo",
    "get_automation_repo_for_write",
    "get_automation_service",
    "get_automation_service_for_write",
    "get_crm_gateway",
    "get_execution_repo",
    "get_execution_repo_for_write",
]
