"""Workflow audit ORM model. Append-only lifecycle log of workflow definitions."""

from datetime import datetime
from typing import Any

from sqlalchemy import Connection, DateTime, ForeignKey, Integer, String, event
from sqlalchemy.orm import Mapped, Mapper, mapped_column
from sqlalchemy.sql import func

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import JSONType
from taskflow.shared.utils.generators import generate_cuid


class WorkflowAuditRecord(Base):
    """Workflow lifecycle entry (CREATED, UPDATED, DUPLICATED, DELETED, template binding).

    workflow_id has no foreign key: the DELETED record outlives its workflow.
    """

    __tablename__ = "workflow_audit_record"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    workflow_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    space_id: Mapped[str] = mapped_column(
        String, ForeignKey("space.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    actor_id: Mapped[str | None] = mapped_column(String, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    audit_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )


@event.listens_for(WorkflowAuditRecord, "before_update")
def _prevent_workflow_audit_updates(
    _mapper: Mapper[Any], _connection: Connection, _target: WorkflowAuditRecord
) -> None:
    """Workflow audit records are append-only; updates are forbidden."""
    raise ValueError("Workflow audit records are immutable and cannot be updated.")


@event.listens_for(WorkflowAuditRecord, "before_delete")
def _prevent_workflow_audit_deletes(
    _mapper: Mapper[Any], _connection: Connection, _target: WorkflowAuditRecord
) -> None:
    """Workflow audit records cannot be deleted."""
    raise ValueError("Workflow audit records cannot be deleted.")
