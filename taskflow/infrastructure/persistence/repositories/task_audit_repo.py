"""Task audit repository: append-only; there is no update or delete method."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.audit import TaskAuditRecordCreate, TaskAuditRecordResult
from taskflow.infrastructure.persistence.models.task_audit import TaskAuditRecord
from taskflow.infrastructure.persistence.repositories.base import BaseRepository
from taskflow.shared.enums import TaskActivityType
from taskflow.shared.utils.datetime import ensure_utc


def _to_result(r: TaskAuditRecord) -> TaskAuditRecordResult:
    return TaskAuditRecordResult(
        id=r.id,
        task_id=r.task_id,
        space_id=r.space_id,
        user_id=r.user_id,
        from_status_id=r.from_status_id,
        to_status_id=r.to_status_id,
        transition_id=r.transition_id,
        transition_key=r.transition_key,
        activity_type=r.activity_type,
        timestamp=ensure_utc(r.timestamp),
        metadata=dict(r.audit_metadata or {}),
    )


class TaskAuditRepository(BaseRepository[TaskAuditRecord]):
    """Task audit repository. Implements ITaskAuditRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, TaskAuditRecord)

    async def append(self, data: TaskAuditRecordCreate) -> TaskAuditRecordResult:
        record = await self._create(
            TaskAuditRecord(
                task_id=data.task_id,
                space_id=data.space_id,
                user_id=data.user_id,
                activity_type=TaskActivityType.STATUS_CHANGED.value,
                from_status_id=data.from_status_id,
                to_status_id=data.to_status_id,
                transition_id=data.transition_id,
                transition_key=data.transition_key,
                timestamp=data.timestamp,
                audit_metadata=dict(data.metadata),
            )
        )
        return _to_result(record)

    async def list_for_task(self, task_id: str) -> list[TaskAuditRecordResult]:
        result = await self.db.execute(
            select(TaskAuditRecord)
            .where(TaskAuditRecord.task_id == task_id)
            .order_by(TaskAuditRecord.timestamp.asc(), TaskAuditRecord.id.asc())
        )
        return [_to_result(r) for r in result.scalars().all()]
