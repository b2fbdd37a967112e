"""Adapters for systems outside this service."""

from travel_crm.infrastructure.external.crm_gateway import LoggingCrmGateway

__all__ = ["LoggingCrmGateway"]
