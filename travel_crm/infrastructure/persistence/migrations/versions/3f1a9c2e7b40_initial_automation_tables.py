"""initial automation tables

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-18

automation, automation_action, automation_execution and
automation_execution_step. Actions and executions cascade with their automation.
"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

revision: str = "3f1a9c2e7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EXECUTION_STATUSES = "'pending', 'running', 'completed', 'failed', 'paused'"
STEP_STATUSES = "'pending', 'running', 'success', 'failed', 'cancelled'"


def upgrade() -> None:
    op.create_table(
        "automation",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger_type", sa.String(length=64), nullable=False),
        sa.Column("trigger_conditions", sa.JSON(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_automation_trigger_type", "automation", ["trigger_type"])
    op.create_index("ix_automation_is_active", "automation", ["is_active"])

    op.create_table(
        "automation_action",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("automation_id", sa.String(length=36), nullable=False),
        sa.Column("action_type", sa.String(length=64), nullable=False),
        sa.Column("parameters", sa.JSON(), nullable=False),
        sa.Column(
            "delay_minutes", sa.Integer(), server_default=sa.text("0"), nullable=False
        ),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["automation_id"], ["automation.id"], ondelete="CASCADE"),
        sa.CheckConstraint('"order" >= 1', name="automation_action_order_check"),
        sa.CheckConstraint("delay_minutes >= 0", name="automation_action_delay_check"),
    )
    op.create_index(
        "ix_automation_action_automation_id", "automation_action", ["automation_id"]
    )

    op.create_table(
        "automation_execution",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("automation_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("triggered_by", sa.JSON(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        sa.Column("claimed_by", sa.String(length=255), nullable=True),
        sa.Column("claimed_until", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["automation_id"], ["automation.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "automation_id",
            "idempotency_key",
            name="uq_automation_execution_idempotency_key",
        ),
        sa.CheckConstraint(
            f"status IN ({EXECUTION_STATUSES})",
            name="automation_execution_status_check",
        ),
    )
    op.create_index(
        "ix_automation_execution_automation_id", "automation_execution", ["automation_id"]
    )
    op.create_index("ix_automation_execution_status", "automation_execution", ["status"])
    op.create_index(
        "ix_automation_execution_started_at", "automation_execution", ["started_at"]
    )
    op.create_index(
        "ix_automation_execution_automation_started",
        "automation_execution",
        ["automation_id", "started_at"],
    )

    op.create_table(
        "automation_execution_step",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("execution_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("action_type", sa.String(length=64), nullable=False),
        sa.Column("parameters", sa.JSON(), nullable=False),
        sa.Column("delay_minutes", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("result", sa.JSON(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["execution_id"], ["automation_execution.id"], ondelete="CASCADE"
        ),
        sa.CheckConstraint(
            f"status IN ({STEP_STATUSES})",
            name="automation_execution_step_status_check",
        ),
    )
    op.create_index(
        "ix_automation_execution_step_execution_id",
        "automation_execution_step",
        ["execution_id"],
    )
    op.create_index(
        "ix_automation_execution_step_due_at", "automation_execution_step", ["due_at"]
    )
    op.create_index(
        "ix_automation_execution_step_status_due",
        "automation_execution_step",
        ["status", "due_at"],
    )


def downgrade() -> None:
    op.drop_table("automation_execution_step")
    op.drop_table("automation_execution")
    op.drop_table("automation_action")
    op.drop_index("ix_automation_is_active", table_name="automation")
    op.drop_index("ix_automation_trigger_type", table_name="automation")
    op.drop_table("automation")
