"""Workflow audit repository: append-only lifecycle records."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.audit import WorkflowAuditRecordResult
from taskflow.infrastructure.persistence.models.workflow_audit import WorkflowAuditRecord
from taskflow.infrastructure.persistence.repositories.base import BaseRepository
from taskflow.shared.utils import utc_now
from taskflow.shared.utils.datetime import ensure_utc


def _to_result(r: WorkflowAuditRecord) -> WorkflowAuditRecordResult:
    return WorkflowAuditRecordResult(
        id=r.id,
        workflow_id=r.workflow_id,
        space_id=r.space_id,
        version=r.version,
        action=r.action,
        actor_id=r.actor_id,
        timestamp=ensure_utc(r.timestamp),
        metadata=dict(r.audit_metadata or {}),
    )


class WorkflowAuditRepository(BaseRepository[WorkflowAuditRecord]):
    """Workflow audit repository. Implements IWorkflowAuditRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowAuditRecord)

    async def append(
        self,
        *,
        workflow_id: str,
        space_id: str,
        version: int,
        action: str,
        actor_id: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> WorkflowAuditRecordResult:
        record = await self._create(
            WorkflowAuditRecord(
                workflow_id=workflow_id,
                space_id=space_id,
                version=version,
                action=action,
                actor_id=actor_id,
                timestamp=utc_now(),
                audit_metadata=metadata or {},
            )
        )
        return _to_result(record)

    async def list_for_workflow(self, workflow_id: str) -> list[WorkflowAuditRecordResult]:
        result = await self.db.execute(
            select(WorkflowAuditRecord)
            .where(WorkflowAuditRecord.workflow_id == workflow_id)
            .order_by(WorkflowAuditRecord.timestamp.asc(), WorkflowAuditRecord.id.asc())
        )
        return [_to_result(r) for r in result.scalars().all()]
