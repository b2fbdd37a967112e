"""Column mixins shared by the automation tables.

Every table has a UUID4 string primary key (the API validates path ids as
UUIDs). Only the automation table tracks created/updated timestamps:
executions and steps carry their own lifecycle times.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from travel_crm.shared.utils.generators import generate_uuid


class UuidMixin:
    """UUID4 string primary key generated client-side."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String(36), primary_key=True, default=generate_uuid)


class TimestampMixin:
    """created_at / updated_at with database defaults (timestamptz)."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
