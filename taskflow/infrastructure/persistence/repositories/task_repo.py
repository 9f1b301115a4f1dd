"""Task repository: creation, reads and the versioned conditional status write."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.task import TaskCreate, TaskResult
from taskflow.infrastructure.persistence.models.task import Task
from taskflow.infrastructure.persistence.repositories.base import BaseRepository
from taskflow.shared.utils.datetime import ensure_utc


def _to_result(t: Task) -> TaskResult:
    """Map Task ORM to TaskResult DTO."""
    return TaskResult(
        id=t.id,
        space_id=t.space_id,
        template_id=t.template_id,
        workflow_id=t.workflow_id,
        status_id=t.status_id,
        version=t.version,
        title=t.title,
        description=t.description,
        assignee_id=t.assignee_id,
        priority=t.priority,
        due_at=ensure_utc(t.due_at),
        sprint_id=t.sprint_id,
        parent_id=t.parent_id,
        custom_fields=dict(t.custom_fields or {}),
        completed_at=ensure_utc(t.completed_at),
        created_by=t.created_by,
        created_at=ensure_utc(t.created_at),
        updated_at=ensure_utc(t.updated_at),
    )


class TaskRepository(BaseRepository[Task]):
    """Task repository. Implements ITaskRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Task)

    async def get_by_id(self, task_id: str) -> TaskResult | None:
        row = await self._get_orm_by_id(task_id)
        return _to_result(row) if row else None

    async def create(
        self,
        space_id: str,
        data: TaskCreate,
        *,
        workflow_id: str | None,
        status_id: str | None,
        created_by: str | None,
    ) -> TaskResult:
        """Create a task at version 1 and return the result DTO."""
        task = await self._create(
            Task(
                space_id=space_id,
                template_id=data.template_id,
                workflow_id=workflow_id,
                status_id=status_id,
                version=1,
                title=data.title.strip(),
                description=data.description,
                assignee_id=data.assignee_id,
                priority=data.priority,
                due_at=ensure_utc(data.due_at),
                sprint_id=data.sprint_id,
                parent_id=data.parent_id,
                custom_fields=dict(data.custom_fields),
                created_by=created_by,
            )
        )
        return _to_result(task)

    async def update_status_if_version(
        self,
        task_id: str,
        *,
        expected_version: int,
        expected_status_id: str | None,
        values: dict[str, Any],
    ) -> TaskResult | None:
        """Apply values and bump version only if version and status are unchanged (optimistic lock).

        Returns the updated task if exactly one row was updated; None if another
        request won the race.
        """
        stmt = (
            update(Task)
            .where(
                Task.id == task_id,
                Task.version == expected_version,
                Task.status_id == expected_status_id,
            )
            .values(version=Task.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        return await self.get_by_id(task_id)

    async def count_open_subtasks(self, task_id: str) -> int:
        """Subtasks are open until a transition into a done status stamps completed_at."""
        result = await self.db.execute(
            select(func.count())
            .select_from(Task)
            .where(Task.parent_id == task_id, Task.completed_at.is_(None))
        )
        return int(result.scalar_one())

    async def count_by_workflow(self, workflow_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Task).where(Task.workflow_id == workflow_id)
        )
        return int(result.scalar_one())

    async def count_by_statuses(self, status_ids: list[str]) -> int:
        if not status_ids:
            return 0
        result = await self.db.execute(
            select(func.count()).select_from(Task).where(Task.status_id.in_(status_ids))
        )
        return int(result.scalar_one())
