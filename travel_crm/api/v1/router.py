"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from travel_crm.api.v1.dependencies (no manual repo/service construction).
"""

from fastapi import APIRouter

from travel_crm.api.v1.endpoints import automations, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(automations.router, prefix="/automations", tags=["automations"])
