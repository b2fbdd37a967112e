"""Automation, AutomationAction, AutomationExecution and ExecutionStep ORM models."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from travel_crm.domain.enums import ExecutionStatus, StepStatus
from travel_crm.infrastructure.persistence.database import Base
from travel_crm.infrastructure.persistence.models.mixins import TimestampMixin, UuidMixin


def _in_values(column: str, values: list[str]) -> str:
    return "{} IN ({})".format(
        column, ", ".join("'{}'".format(v.replace("'", "''")) for v in values)
    )


class Automation(UuidMixin, TimestampMixin, Base):
    """Automation definition. Table: automation. Trigger + ordered actions."""

    __tablename__ = "automation"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    trigger_conditions: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true"), index=True
    )

    actions: Mapped[list["AutomationAction"]] = relationship(
        back_populates="automation",
        cascade="all, delete-orphan",
        order_by=lambda: [AutomationAction.order, AutomationAction.position],
        lazy="selectin",
    )


class AutomationAction(UuidMixin, Base):
    """One action of an automation. Table: automation_action.

    position keeps submission order so equal order values stay stable.
    """

    __tablename__ = "automation_action"

    automation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("automation.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action_type: Mapped[str] = mapped_column(String(64), nullable=False)
    parameters: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    delay_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    order: Mapped[int] = mapped_column("order", Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    automation: Mapped[Automation] = relationship(back_populates="actions")

    __table_args__ = (
        CheckConstraint('"order" >= 1', name="automation_action_order_check"),
        CheckConstraint("delay_minutes >= 0", name="automation_action_delay_check"),
    )


class AutomationExecution(UuidMixin, Base):
    """One run of an automation. Table: automation_execution."""

    __tablename__ = "automation_execution"

    automation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("automation.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ExecutionStatus.PENDING.value,
        index=True,
    )
    triggered_by: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    claimed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    claimed_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    steps: Mapped[list["ExecutionStep"]] = relationship(
        back_populates="execution",
        cascade="all, delete-orphan",
        order_by="ExecutionStep.position",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint(
            "automation_id",
            "idempotency_key",
            name="uq_automation_execution_idempotency_key",
        ),
        Index(
            "ix_automation_execution_automation_started",
            "automation_id",
            "started_at",
        ),
        CheckConstraint(
            _in_values("status", ExecutionStatus.values()),
            name="automation_execution_status_check",
        ),
    )


class ExecutionStep(UuidMixin, Base):
    """Queued action of an execution. Table: automation_execution_step."""

    __tablename__ = "automation_execution_step"

    execution_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("automation_execution.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False)
    action_type: Mapped[str] = mapped_column(String(64), nullable=False)
    parameters: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    delay_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=StepStatus.PENDING.value
    )
    due_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    result: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    execution: Mapped[AutomationExecution] = relationship(back_populates="steps")

    __table_args__ = (
        Index(
            "ix_automation_execution_step_status_due",
            "status",
            "due_at",
        ),
        CheckConstraint(
            _in_values("status", StepStatus.values()),
            name="automation_execution_step_status_check",
        ),
    )
