"""Task ORM model. status_id, version and completed_at change only through the transition engine."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import (
    JSONType,
    SpaceScopedModel,
    VersionedMixin,
)


class Task(SpaceScopedModel, VersionedMixin, Base):
    """Task. Table: task. version is the optimistic-lock counter."""

    __tablename__ = "task"

    template_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("task_template.id", ondelete="SET NULL"), nullable=True
    )
    workflow_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("workflow.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    status_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("workflow_status.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    assignee_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    priority: Mapped[str | None] = mapped_column(String(16), nullable=True)
    due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sprint_id: Mapped[str | None] = mapped_column(String, nullable=True)
    parent_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("task.id", ondelete="CASCADE"), nullable=True, index=True
    )
    custom_fields: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (Index("ix_task_space_status", "space_id", "status_id"),)
