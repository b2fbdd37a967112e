"""Core: config, exception mapping, lifespan, and rate limiting."""

from travel_crm.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
