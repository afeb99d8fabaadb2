"""Initial schema for Sitebook.

Creates the core tables: projects, the append-only activity_log, and the
production scope tables loops and loop_tasks.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import ENUM, JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PHASES = (
    "intake", "estimating", "quoted", "contracted",
    "active", "punch_list", "complete", "cancelled",
)


def upgrade() -> None:
    project_phase = sa.Enum(*PHASES, name="project_phase")
    project_phase.create(op.get_bind(), checkfirst=True)

    # Projects table
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "phase",
            ENUM(*PHASES, name="project_phase", create_type=False),
            nullable=False,
            server_default="intake",
        ),
        sa.Column("client_name", sa.Text(), nullable=True),
        sa.Column("client_email", sa.Text(), nullable=True),
        sa.Column("client_phone", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("estimate_low", sa.Float(), nullable=True),
        sa.Column("estimate_high", sa.Float(), nullable=True),
        sa.Column("contract_value", sa.Float(), nullable=True),
        sa.Column("spent", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("progress", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("build_tier", sa.Text(), nullable=True),
        sa.Column("estimate_line_items", JSONB, nullable=True),
        sa.Column("intake_data", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("dashboard", JSONB, nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_projects_phase", "projects", ["phase"])

    # Activity log, append-only
    op.create_table(
        "activity_log",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", name="fk_activity_log_project_id_projects"),
            nullable=False,
        ),
        sa.Column("event_type", sa.Text(), nullable=False),
        sa.Column("event_data", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("actor_name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_activity_log_project_created",
        "activity_log",
        ["project_id", sa.text("created_at DESC")],
    )

    # Trade loops
    op.create_table(
        "loops",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", name="fk_loops_project_id_projects"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("loop_type", sa.Text(), nullable=False, server_default="task_group"),
        sa.Column("category_code", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("source", sa.Text(), nullable=False, server_default="estimate"),
        sa.Column("budgeted_amount", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("task_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_loops_project_id", "loops", ["project_id"])

    # Loop tasks
    op.create_table(
        "loop_tasks",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column(
            "loop_id",
            sa.Uuid(),
            sa.ForeignKey("loops.id", name="fk_loop_tasks_loop_id_loops"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("2")),
        sa.Column("category_code", sa.Text(), nullable=False),
        sa.Column("subcategory_code", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("source", sa.Text(), nullable=False, server_default="estimate"),
        sa.Column("budgeted_amount", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("quantity", sa.Float(), nullable=False, server_default=sa.text("1")),
        sa.Column("estimate_line_item_id", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_loop_tasks_loop_id", "loop_tasks", ["loop_id"])


def downgrade() -> None:
    op.drop_index("ix_loop_tasks_loop_id", table_name="loop_tasks")
    op.drop_table("loop_tasks")
    op.drop_index("ix_loops_project_id", table_name="loops")
    op.drop_table("loops")
    op.drop_index("ix_activity_log_project_created", table_name="activity_log")
    op.drop_table("activity_log")
    op.drop_index("ix_projects_phase", table_name="projects")
    op.drop_table("projects")

    sa.Enum(name="project_phase").drop(op.get_bind(), checkfirst=True)
