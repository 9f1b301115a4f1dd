"""Task audit ORM model. Append-only record of every committed status change."""

from datetime import datetime
from typing import Any

from sqlalchemy import Connection, DateTime, ForeignKey, Index, String, event
from sqlalchemy.orm import Mapped, Mapper, mapped_column
from sqlalchemy.sql import func

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import JSONType
from taskflow.shared.enums import TaskActivityType
from taskflow.shared.utils.generators import generate_cuid


class TaskAuditRecord(Base):
    """Who moved which task from which status to which, via which edge, when. No update/delete.

    transition_id is kept without a foreign key so history survives edits to the
    workflow definition; transition_key snapshots the edge's key at the time.
    """

    __tablename__ = "task_audit_record"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    task_id: Mapped[str] = mapped_column(
        String, ForeignKey("task.id", ondelete="CASCADE"), nullable=False
    )
    space_id: Mapped[str] = mapped_column(
        String, ForeignKey("space.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    activity_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=TaskActivityType.STATUS_CHANGED.value,
        server_default=TaskActivityType.STATUS_CHANGED.value,
    )
    from_status_id: Mapped[str | None] = mapped_column(String, nullable=True)
    to_status_id: Mapped[str] = mapped_column(String, nullable=False)
    transition_id: Mapped[str] = mapped_column(String, nullable=False)
    transition_key: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    audit_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )

    __table_args__ = (Index("ix_task_audit_task_time", "task_id", "timestamp"),)


@event.listens_for(TaskAuditRecord, "before_update")
def _prevent_task_audit_updates(
    _mapper: Mapper[Any], _connection: Connection, _target: TaskAuditRecord
) -> None:
    """Task audit records are append-only; updates are forbidden."""
    raise ValueError("Task audit records are immutable and cannot be updated.")


@event.listens_for(TaskAuditRecord, "before_delete")
def _prevent_task_audit_deletes(
    _mapper: Mapper[Any], _connection: Connection, _target: TaskAuditRecord
) -> None:
    """Task audit records cannot be deleted."""
    raise ValueError("Task audit records cannot be deleted.")
