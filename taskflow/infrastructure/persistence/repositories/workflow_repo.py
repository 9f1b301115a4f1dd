"""Workflow definition repository: workflows with their statuses and transitions."""

from __future__ import annotations

from collections import defaultdict

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.workflow import (
    StatusToPersist,
    TransitionToPersist,
    WorkflowGraphToPersist,
)
from taskflow.domain.entities.workflow import (
    StatusEntity,
    TransitionEntity,
    WorkflowEntity,
)
from taskflow.domain.exceptions import WorkflowNotFoundException
from taskflow.infrastructure.persistence.models.task_template import TaskTemplate
from taskflow.infrastructure.persistence.models.workflow import (
    Workflow,
    WorkflowStatus,
    WorkflowTransition,
)
from taskflow.infrastructure.persistence.repositories.base import BaseRepository
from taskflow.shared.utils.datetime import ensure_utc


def _status_to_entity(s: WorkflowStatus) -> StatusEntity:
    return StatusEntity(
        id=s.id,
        workflow_id=s.workflow_id,
        key=s.key,
        name=s.name,
        color=s.color,
        category=s.category,
        position=s.position,
        is_done=s.is_done,
        is_initial=s.is_initial,
    )


def _transition_to_entity(t: WorkflowTransition) -> TransitionEntity:
    return TransitionEntity(
        id=t.id,
        workflow_id=t.workflow_id,
        from_status_id=t.from_status_id,
        to_status_id=t.to_status_id,
        transition_key=t.transition_key,
        name=t.name,
        position=t.position,
        guards=list(t.guards or []),
        required_permission=t.required_permission,
        post_functions=list(t.post_functions or []),
        is_global=t.is_global,
    )


def _apply_status(row: WorkflowStatus, s: StatusToPersist) -> None:
    row.key = s.key
    row.name = s.name
    row.color = s.color
    row.category = s.category
    row.position = s.position
    row.is_done = s.is_done
    row.is_initial = s.is_initial


def _apply_transition(row: WorkflowTransition, t: TransitionToPersist) -> None:
    row.from_status_id = t.from_status_id
    row.to_status_id = t.to_status_id
    row.transition_key = t.transition_key
    row.name = t.name
    row.position = t.position
    row.guards = list(t.guards)
    row.required_permission = t.required_permission
    row.post_functions = list(t.post_functions)
    row.is_global = t.is_global


class WorkflowRepository(BaseRepository[Workflow]):
    """Workflow repository. Implements IWorkflowRepository; returns WorkflowEntity graphs."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Workflow)

    async def _assemble(self, workflows: list[Workflow]) -> list[WorkflowEntity]:
        """Load statuses, transitions and bound templates for workflows in three queries."""
        if not workflows:
            return []
        ids = [w.id for w in workflows]
        statuses: dict[str, list[StatusEntity]] = defaultdict(list)
        transitions: dict[str, list[TransitionEntity]] = defaultdict(list)
        templates: dict[str, list[str]] = defaultdict(list)

        status_rows = await self.db.execute(
            select(WorkflowStatus)
            .where(WorkflowStatus.workflow_id.in_(ids))
            .order_by(WorkflowStatus.position.asc(), WorkflowStatus.key.asc())
            .execution_options(populate_existing=True)
        )
        for s in status_rows.scalars().all():
            statuses[s.workflow_id].append(_status_to_entity(s))

        transition_rows = await self.db.execute(
            select(WorkflowTransition)
            .where(WorkflowTransition.workflow_id.in_(ids))
            .order_by(
                WorkflowTransition.position.asc(),
                WorkflowTransition.transition_key.asc(),
                WorkflowTransition.id.asc(),
            )
            .execution_options(populate_existing=True)
        )
        for t in transition_rows.scalars().all():
            transitions[t.workflow_id].append(_transition_to_entity(t))

        template_rows = await self.db.execute(
            select(TaskTemplate.workflow_id, TaskTemplate.id)
            .where(TaskTemplate.workflow_id.in_(ids))
            .order_by(TaskTemplate.id.asc())
        )
        for workflow_id, template_id in template_rows.all():
            templates[workflow_id].append(template_id)

        return [
            WorkflowEntity(
                id=w.id,
                space_id=w.space_id,
                name=w.name,
                description=w.description,
                is_default=w.is_default,
                version=w.version,
                statuses=statuses[w.id],
                transitions=transitions[w.id],
                created_at=ensure_utc(w.created_at),
                updated_at=ensure_utc(w.updated_at),
                linked_template_ids=templates[w.id],
            )
            for w in workflows
        ]

    async def get_by_id(self, workflow_id: str) -> WorkflowEntity | None:
        row = await self._get_orm_by_id(workflow_id)
        if row is None:
            return None
        return (await self._assemble([row]))[0]

    async def get_by_id_and_space(
        self, workflow_id: str, space_id: str
    ) -> WorkflowEntity | None:
        result = await self.db.execute(
            select(Workflow)
            .where(Workflow.id == workflow_id, Workflow.space_id == space_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return (await self._assemble([row]))[0]

    async def list_by_space(self, space_id: str) -> list[WorkflowEntity]:
        result = await self.db.execute(
            select(Workflow)
            .where(Workflow.space_id == space_id)
            .order_by(Workflow.created_at.asc(), Workflow.id.asc())
            .execution_options(populate_existing=True)
        )
        return await self._assemble(list(result.scalars().all()))

    async def get_default_for_space(self, space_id: str) -> WorkflowEntity | None:
        result = await self.db.execute(
            select(Workflow)
            .where(Workflow.space_id == space_id, Workflow.is_default.is_(True))
            .order_by(Workflow.updated_at.desc(), Workflow.id.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return (await self._assemble([row]))[0]

    async def create(
        self,
        space_id: str,
        *,
        name: str,
        description: str | None,
        is_default: bool,
        graph: WorkflowGraphToPersist,
        actor_id: str | None,
    ) -> WorkflowEntity:
        """Insert the workflow row first, then statuses, then transitions (FK order)."""
        workflow = await self._create(
            Workflow(
                space_id=space_id,
                name=name,
                description=description,
                is_default=is_default,
                version=1,
                created_by=actor_id,
                updated_by=actor_id,
            )
        )
        for s in graph.statuses:
            row = WorkflowStatus(id=s.id, workflow_id=workflow.id)
            _apply_status(row, s)
            self.db.add(row)
        await self.db.flush()
        for t in graph.transitions:
            row = WorkflowTransition(id=t.id, workflow_id=workflow.id)
            _apply_transition(row, t)
            self.db.add(row)
        await self.db.flush()
        return (await self._assemble([workflow]))[0]

    async def update_attributes(
        self,
        workflow_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        clear_description: bool = False,
        is_default: bool | None = None,
        actor_id: str | None = None,
    ) -> None:
        row = await self._get_orm_by_id(workflow_id)
        if row is None:
            raise WorkflowNotFoundException(workflow_id)
        if name is not None:
            row.name = name
        if clear_description:
            row.description = None
        elif description is not None:
            row.description = description
        if is_default is not None:
            row.is_default = is_default
        row.updated_by = actor_id
        await self.db.flush()

    async def replace_graph(
        self,
        workflow_id: str,
        graph: WorkflowGraphToPersist,
        removed_status_ids: list[str],
    ) -> None:
        """Bring stored statuses and transitions in line with graph.

        Rows whose ids appear in graph are updated in place; others are inserted.
        Transitions not in graph are deleted before removed statuses so no edge
        ever points at a missing status. is_initial is cleared first so the
        one-initial-per-workflow index holds after every statement.
        """
        kept_transition_ids = [t.id for t in graph.transitions]
        await self.db.execute(
            delete(WorkflowTransition).where(
                WorkflowTransition.workflow_id == workflow_id,
                WorkflowTransition.id.not_in(kept_transition_ids),
            )
        )
        await self.db.execute(
            update(WorkflowStatus)
            .where(WorkflowStatus.workflow_id == workflow_id)
            .values(is_initial=False)
        )

        existing_statuses = {
            s.id: s
            for s in (
                await self.db.execute(
                    select(WorkflowStatus)
                    .where(WorkflowStatus.workflow_id == workflow_id)
                    .execution_options(populate_existing=True)
                )
            ).scalars().all()
        }
        initial: StatusToPersist | None = None
        for s in graph.statuses:
            row = existing_statuses.get(s.id)
            if row is None:
                row = WorkflowStatus(id=s.id, workflow_id=workflow_id)
                self.db.add(row)
            _apply_status(row, s)
            if s.is_initial:
                initial = s
                row.is_initial = False
        await self.db.flush()
        if initial is not None:
            await self.db.execute(
                update(WorkflowStatus)
                .where(WorkflowStatus.id == initial.id)
                .values(is_initial=True)
                .execution_options(synchronize_session="fetch")
            )

        if removed_status_ids:
            await self.db.execute(
                delete(WorkflowStatus).where(
                    WorkflowStatus.workflow_id == workflow_id,
                    WorkflowStatus.id.in_(removed_status_ids),
                )
            )

        existing_transitions = {
            t.id: t
            for t in (
                await self.db.execute(
                    select(WorkflowTransition).where(
                        WorkflowTransition.workflow_id == workflow_id
                    )
                )
            ).scalars().all()
        }
        for t in graph.transitions:
            row = existing_transitions.get(t.id)
            if row is None:
                row = WorkflowTransition(id=t.id, workflow_id=workflow_id)
                self.db.add(row)
            _apply_transition(row, t)
        await self.db.flush()

    async def bump_version(self, workflow_id: str) -> int:
        result = await self.db.execute(
            update(Workflow)
            .where(Workflow.id == workflow_id)
            .values(version=Workflow.version + 1)
            .returning(Workflow.version)
        )
        return int(result.scalar_one())

    async def clear_default(self, space_id: str, except_workflow_id: str) -> None:
        await self.db.execute(
            update(Workflow)
            .where(
                Workflow.space_id == space_id,
                Workflow.id != except_workflow_id,
                Workflow.is_default.is_(True),
            )
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )

    async def delete(self, workflow_id: str) -> None:
        """Delete transitions, statuses and the workflow row, children first."""
        await self.db.execute(
            delete(WorkflowTransition).where(WorkflowTransition.workflow_id == workflow_id)
        )
        await self.db.execute(
            delete(WorkflowStatus).where(WorkflowStatus.workflow_id == workflow_id)
        )
        row = await self._get_orm_by_id(workflow_id)
        if row is not None:
            await self._delete(row)

    async def get_transition(
        self, workflow_id: str, transition_id: str
    ) -> TransitionEntity | None:
        result = await self.db.execute(
            select(WorkflowTransition)
            .where(
                WorkflowTransition.id == transition_id,
                WorkflowTransition.workflow_id == workflow_id,
            )
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _transition_to_entity(row) if row else None
