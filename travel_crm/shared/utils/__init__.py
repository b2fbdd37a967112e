"""Shared utilities: datetime helpers and ID generators."""

from travel_crm.shared.utils.datetime import add_minutes, ensure_utc, utc_now
from travel_crm.shared.utils.generators import generate_uuid

__all__ = ["add_minutes", "ensure_utc", "generate_uuid", "utc_now"]
