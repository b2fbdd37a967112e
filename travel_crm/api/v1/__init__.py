"""API version 1."""

from travel_crm.api.v1.router import api_router

__all__ = ["api_router"]
