"""initial_schema_spaces_workflows_tasks_audit

Revision ID: 3f9a1c2b7d40
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
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
    ]


def upgrade() -> None:
    """Upgrade schema."""
    # Spaces and membership
    op.create_table(
        "space",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_table(
        "space_role",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("space_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["space_id"], ["space.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("space_id", "name", name="uq_space_role_name"),
    )
    op.create_index("ix_space_role_space_id", "space_role", ["space_id"])
    op.create_table(
        "space_role_permission",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("role_id", sa.String(), nullable=False),
        sa.Column("permission_key", sa.String(length=100), nullable=False),
        sa.Column("granted", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["space_role.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("role_id", "permission_key", name="uq_space_role_permission"),
    )
    op.create_index(
        "ix_space_role_permission_role_id", "space_role_permission", ["role_id"]
    )
    op.create_table(
        "space_member",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("space_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(length=16), server_default="MEMBER", nullable=False),
        sa.Column("role_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["space_id"], ["space.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["space_role.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("space_id", "user_id", name="uq_space_member"),
    )
    op.create_index("ix_space_member_space_id", "space_member", ["space_id"])
    op.create_index("ix_space_member_user_id", "space_member", ["user_id"])

    # Workflow definitions
    op.create_table(
        "workflow",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("space_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_default", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["space_id"], ["space.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workflow_space_id", "workflow", ["space_id"])
    op.create_index("ix_workflow_created_by", "workflow", ["created_by"])
    op.create_table(
        "workflow_status",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("color", sa.String(length=32), nullable=True),
        sa.Column("category", sa.String(length=16), server_default="TODO", nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("is_done", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("is_initial", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.CheckConstraint(
            "category IN ('TODO', 'IN_PROGRESS', 'DONE')",
            name="ck_workflow_status_category",
        ),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflow.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("workflow_id", "key", name="uq_workflow_status_key"),
    )
    op.create_index("ix_workflow_status_workflow_id", "workflow_status", ["workflow_id"])
    # At most one initial status per workflow
    op.create_index(
        "uq_workflow_status_initial",
        "workflow_status",
        ["workflow_id"],
        unique=True,
        postgresql_where=sa.text("is_initial"),
        sqlite_where=sa.text("is_initial = 1"),
    )
    op.create_table(
        "workflow_transition",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("from_status_id", sa.String(), nullable=True),
        sa.Column("to_status_id", sa.String(), nullable=False),
        sa.Column("transition_key", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("guards", _JSON, nullable=False),
        sa.Column("required_permission", sa.String(length=100), nullable=True),
        sa.Column("post_functions", _JSON, nullable=False),
        sa.Column("is_global", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.CheckConstraint(
            "(is_global AND from_status_id IS NULL) OR (NOT is_global AND from_status_id IS NOT NULL)",
            name="ck_workflow_transition_global",
        ),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflow.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["from_status_id"], ["workflow_status.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["to_status_id"], ["workflow_status.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "workflow_id",
            "from_status_id",
            "transition_key",
            name="uq_workflow_transition_key",
        ),
    )
    op.create_index(
        "ix_workflow_transition_workflow_id", "workflow_transition", ["workflow_id"]
    )
    op.create_index(
        "ix_workflow_transition_from",
        "workflow_transition",
        ["workflow_id", "from_status_id"],
    )

    # Templates and tasks
    op.create_table(
        "task_template",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("space_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("workflow_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["space_id"], ["space.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflow.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_task_template_space_id", "task_template", ["space_id"])
    op.create_index("ix_task_template_workflow_id", "task_template", ["workflow_id"])
    op.create_table(
        "task",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("space_id", sa.String(), nullable=False),
        sa.Column("template_id", sa.String(), nullable=True),
        sa.Column("workflow_id", sa.String(), nullable=True),
        sa.Column("status_id", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("assignee_id", sa.String(), nullable=True),
        sa.Column("priority", sa.String(length=16), nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sprint_id", sa.String(), nullable=True),
        sa.Column("parent_id", sa.String(), nullable=True),
        sa.Column("custom_fields", _JSON, nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["space_id"], ["space.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["template_id"], ["task_template.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflow.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["status_id"], ["workflow_status.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["parent_id"], ["task.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_task_space_id", "task", ["space_id"])
    op.create_index("ix_task_workflow_id", "task", ["workflow_id"])
    op.create_index("ix_task_status_id", "task", ["status_id"])
    op.create_index("ix_task_assignee_id", "task", ["assignee_id"])
    op.create_index("ix_task_parent_id", "task", ["parent_id"])
    op.create_index("ix_task_space_status", "task", ["space_id", "status_id"])

    # Append-only audit logs
    op.create_table(
        "task_audit_record",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("task_id", sa.String(), nullable=False),
        sa.Column("space_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "activity_type",
            sa.String(length=32),
            server_default="STATUS_CHANGED",
            nullable=False,
        ),
        sa.Column("from_status_id", sa.String(), nullable=True),
        sa.Column("to_status_id", sa.String(), nullable=False),
        sa.Column("transition_id", sa.String(), nullable=False),
        sa.Column("transition_key", sa.String(length=64), nullable=False),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("metadata", _JSON, nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["task.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["space_id"], ["space.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_task_audit_record_space_id", "task_audit_record", ["space_id"])
    op.create_index("ix_task_audit_record_user_id", "task_audit_record", ["user_id"])
    op.create_index("ix_task_audit_task_time", "task_audit_record", ["task_id", "timestamp"])
    op.create_table(
        "workflow_audit_record",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("space_id", sa.String(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("metadata", _JSON, nullable=False),
        sa.ForeignKeyConstraint(["space_id"], ["space.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_workflow_audit_record_workflow_id", "workflow_audit_record", ["workflow_id"]
    )
    op.create_index(
        "ix_workflow_audit_record_space_id", "workflow_audit_record", ["space_id"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("workflow_audit_record")
    op.drop_table("task_audit_record")
    op.drop_table("task")
    op.drop_table("task_template")
    op.drop_table("workflow_transition")
    op.drop_table("workflow_status")
    op.drop_table("workflow")
    op.drop_table("space_member")
    op.drop_table("space_role_permission")
    op.drop_table("space_role")
    op.drop_table("space")
