"""Create users, teams, projects and tasks tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE_CHECK = "role IN ('OWNER', 'ADMIN', 'MEMBER')"


def _membership_table(name: str, parent: str, parent_column: str) -> None:
    op.create_table(
        name,
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column(
            parent_column,
            sa.UUID(),
            sa.ForeignKey(f"{parent}.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("accepted_invite", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("invitation_token", sa.String(64), nullable=True, unique=True),
        sa.Column("invitation_token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint(parent_column, "user_id", name=f"uq_{name}_{parent[:-1]}_user"),
        sa.CheckConstraint(ROLE_CHECK, name=f"ck_{name}_role"),
    )
    op.create_index(f"ix_{name}_{parent_column}", name, [parent_column])
    op.create_index(f"ix_{name}_user_id", name, ["user_id"])
    # At most one OWNER row per resource
    op.create_index(
        f"uq_{name}_one_owner",
        name,
        [parent_column],
        unique=True,
        postgresql_where=sa.text("role = 'OWNER'"),
    )


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("verification_token", sa.String(64), nullable=True, unique=True),
        sa.Column("verification_token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reset_password_token", sa.String(64), nullable=True, unique=True),
        sa.Column("reset_password_token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # --- teams / projects ---
    for table, name_column in (("teams", "name"), ("projects", "title")):
        op.create_table(
            table,
            sa.Column(
                "id",
                sa.UUID(),
                server_default=sa.text("gen_random_uuid()"),
                primary_key=True,
            ),
            sa.Column(name_column, sa.String(50), nullable=False),
            sa.Column("description", sa.String(250), nullable=False, server_default=""),
            sa.Column("owner_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("invitation_token", sa.String(64), nullable=True, unique=True),
            sa.Column("invitation_token_expiry", sa.DateTime(timezone=True), nullable=True),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("now()"),
            ),
        )
        op.create_index(f"ix_{table}_owner_id", table, ["owner_id"])

    _membership_table("team_members", "teams", "team_id")
    _membership_table("project_members", "projects", "project_id")

    # --- tasks ---
    op.create_table(
        "tasks",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column(
            "project_id",
            sa.UUID(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("owner_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=False, server_default=""),
        sa.Column("status", sa.String(30), nullable=False, server_default="TO_DO"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completion_comment", sa.String(300), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        # OVERDUE is derived on read and never stored
        sa.CheckConstraint("status IN ('TO_DO', 'IN_PROGRESS', 'DONE')", name="ck_tasks_status"),
    )
    op.create_index("ix_tasks_project_id", "tasks", ["project_id"])
    op.create_index("ix_tasks_owner_id", "tasks", ["owner_id"])

    # --- task_assignments ---
    op.create_table(
        "task_assignments",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column(
            "task_id",
            sa.UUID(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "assigned_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("task_id", "user_id", name="uq_task_assignments_task_user"),
        sa.CheckConstraint("role IN ('OWNER', 'ASSIGNEE')", name="ck_task_assignments_role"),
    )
    op.create_index("ix_task_assignments_task_id", "task_assignments", ["task_id"])
    op.create_index("ix_task_assignments_user_id", "task_assignments", ["user_id"])
    op.create_index(
        "uq_task_assignments_one_owner",
        "task_assignments",
        ["task_id"],
        unique=True,
        postgresql_where=sa.text("role = 'OWNER'"),
    )


def downgrade() -> None:
    op.drop_table("task_assignments")
    op.drop_table("tasks")
    op.drop_table("project_members")
    op.drop_table("team_members")
    op.drop_table("projects")
    op.drop_table("teams")
    op.drop_table("users")
