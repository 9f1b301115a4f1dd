"""Workflow definition ORM models: workflow, its statuses and its transitions."""

from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import (
    CuidMixin,
    JSONType,
    SpaceMixin,
    UserAuditMixin,
    VersionedMixin,
)


class Workflow(CuidMixin, SpaceMixin, UserAuditMixin, VersionedMixin, Base):
    """Workflow definition. Table: workflow. version is bumped on every graph change."""

    __tablename__ = "workflow"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )


class WorkflowStatus(CuidMixin, Base):
    """One status of a workflow. Table: workflow_status."""

    __tablename__ = "workflow_status"

    workflow_id: Mapped[str] = mapped_column(
        String, ForeignKey("workflow.id", ondelete="CASCADE"), nullable=False, index=True
    )
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    category: Mapped[str] = mapped_column(
        String(16), nullable=False, default="TODO", server_default="TODO"
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_done: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )
    is_initial: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )

    __table_args__ = (
        UniqueConstraint("workflow_id", "key", name="uq_workflow_status_key"),
        CheckConstraint(
            "category IN ('TODO', 'IN_PROGRESS', 'DONE')",
            name="ck_workflow_status_category",
        ),
        Index(
            "uq_workflow_status_initial",
            "workflow_id",
            unique=True,
            postgresql_where=sa.text("is_initial"),
            sqlite_where=sa.text("is_initial = 1"),
        ),
    )


class WorkflowTransition(CuidMixin, Base):
    """Directed edge between statuses. Table: workflow_transition.

    from_status_id is NULL only for global edges (is_global), enforced by a check.
    """

    __tablename__ = "workflow_transition"

    workflow_id: Mapped[str] = mapped_column(
        String, ForeignKey("workflow.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_status_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("workflow_status.id", ondelete="CASCADE"), nullable=True
    )
    to_status_id: Mapped[str] = mapped_column(
        String, ForeignKey("workflow_status.id", ondelete="CASCADE"), nullable=False
    )
    transition_key: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    guards: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    required_permission: Mapped[str | None] = mapped_column(String(100), nullable=True)
    post_functions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    is_global: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )

    __table_args__ = (
        UniqueConstraint(
            "workflow_id",
            "from_status_id",
            "transition_key",
            name="uq_workflow_transition_key",
        ),
        CheckConstraint(
            "(is_global AND from_status_id IS NULL) OR (NOT is_global AND from_status_id IS NOT NULL)",
            name="ck_workflow_transition_global",
        ),
        Index("ix_workflow_transition_from", "workflow_id", "from_status_id"),
    )
