"""Task template repository (workflow binding)."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.template import TaskTemplateResult
from taskflow.domain.exceptions import TemplateNotFoundException
from taskflow.infrastructure.persistence.models.task_template import TaskTemplate
from taskflow.infrastructure.persistence.repositories.base import BaseRepository


def _to_result(t: TaskTemplate) -> TaskTemplateResult:
    return TaskTemplateResult(
        id=t.id,
        space_id=t.space_id,
        name=t.name,
        description=t.description,
        workflow_id=t.workflow_id,
    )


class TaskTemplateRepository(BaseRepository[TaskTemplate]):
    """Task template repository. Implements ITaskTemplateRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, TaskTemplate)

    async def get_by_id_and_space(
        self, template_id: str, space_id: str
    ) -> TaskTemplateResult | None:
        result = await self.db.execute(
            select(TaskTemplate)
            .where(TaskTemplate.id == template_id, TaskTemplate.space_id == space_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_result(row) if row else None

    async def create_template(
        self,
        space_id: str,
        name: str,
        description: str | None = None,
        workflow_id: str | None = None,
    ) -> TaskTemplateResult:
        """Create template; return result DTO."""
        row = await self._create(
            TaskTemplate(
                space_id=space_id,
                name=name,
                description=description,
                workflow_id=workflow_id,
            )
        )
        return _to_result(row)

    async def set_workflow(
        self, template_id: str, workflow_id: str | None
    ) -> TaskTemplateResult:
        row = await self._get_orm_by_id(template_id)
        if row is None:
            raise TemplateNotFoundException(template_id)
        row.workflow_id = workflow_id
        await self.db.flush()
        return _to_result(row)

    async def count_by_workflow(self, workflow_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(TaskTemplate)
            .where(TaskTemplate.workflow_id == workflow_id)
        )
        return int(result.scalar_one())
