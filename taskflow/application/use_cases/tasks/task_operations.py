"""Task use cases: creation at the bound workflow's initial status, reads, available transitions, history."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskflow.application.dtos.task import AvailableTransition
from taskflow.application.services.guards import GuardContext, evaluate_guards
from taskflow.core.constants import VIEW_TASKS
from taskflow.domain.exceptions import (
    TaskNotFoundException,
    TemplateNotFoundException,
    ValidationException,
)
from taskflow.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from taskflow.application.dtos.audit import TaskAuditRecordResult
    from taskflow.application.dtos.task import TaskCreate, TaskResult, TransitionOutcome
    from taskflow.application.interfaces.repositories import (
        ITaskAuditRepository,
        ITaskRepository,
        ITaskTemplateRepository,
        IWorkflowRepository,
    )
    from taskflow.application.interfaces.services import IPermissionOracle
    from taskflow.application.use_cases.tasks.perform_transition import TransitionEngine
    from taskflow.domain.entities.workflow import WorkflowEntity
    from taskflow.domain.value_objects import TransitionRef

logger = get_logger(__name__)


class TaskService:
    """Task reads and creation; status changes go through TransitionEngine only."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        workflow_repo: IWorkflowRepository,
        template_repo: ITaskTemplateRepository,
        audit_repo: ITaskAuditRepository,
        permission_oracle: IPermissionOracle,
        engine: TransitionEngine,
    ) -> None:
        self.task_repo = task_repo
        self.workflow_repo = workflow_repo
        self.template_repo = template_repo
        self.audit_repo = audit_repo
        self.permission_oracle = permission_oracle
        self.engine = engine

    async def _resolve_workflow(
        self, space_id: str, template_id: str | None
    ) -> WorkflowEntity | None:
        """Template binding first, then the space default, else no workflow."""
        if template_id is not None:
            template = await self.template_repo.get_by_id_and_space(template_id, space_id)
            if template is None:
                raise TemplateNotFoundException(template_id)
            if template.workflow_id is not None:
                return await self.workflow_repo.get_by_id(template.workflow_id)
        return await self.workflow_repo.get_default_for_space(space_id)

    async def create_task(
        self, space_id: str, data: TaskCreate, actor_id: str
    ) -> TaskResult:
        """Create a task at the initial status of the workflow that governs it."""
        violations: list[str] = []
        if not data.title or not data.title.strip():
            violations.append("Task title is required")
        if data.parent_id is not None:
            parent = await self.task_repo.get_by_id(data.parent_id)
            if parent is None or parent.space_id != space_id:
                violations.append(f"Parent task {data.parent_id} is not in this space")
        if violations:
            raise ValidationException(violations[0], field="task", violations=violations)

        workflow = await self._resolve_workflow(space_id, data.template_id)
        status_id = workflow.initial_status.id if workflow is not None else None
        task = await self.task_repo.create(
            space_id,
            data,
            workflow_id=workflow.id if workflow is not None else None,
            status_id=status_id,
            created_by=actor_id,
        )
        logger.info(
            "Task created: id=%s space=%s workflow=%s",
            task.id,
            space_id,
            task.workflow_id,
        )
        return task

    async def get_task(self, task_id: str, user_id: str) -> TaskResult:
        """Return a task the user may view (non-members see TaskNotFound)."""
        task = await self.task_repo.get_by_id(task_id)
        if task is None or not await self.permission_oracle.has_permission(
            user_id, task.space_id, VIEW_TASKS
        ):
            raise TaskNotFoundException(task_id)
        return task

    async def available_transitions(
        self, task_id: str, user_id: str
    ) -> list[AvailableTransition]:
        """List edges the user could take from the task's current status.

        Edges failing the permission gate are omitted; global edges therefore
        show only for space admins. Guards are evaluated so callers can show
        why an edge is currently blocked.
        """
        await self.get_task(task_id, user_id)
        task, workflow = await self.engine.load(task_id)
        result: list[AvailableTransition] = []
        for transition in workflow.outgoing(task.status_id or ""):
            if not await self.engine.may_perform(task, transition, user_id):
                continue
            reasons = await evaluate_guards(
                GuardContext(
                    task=task,
                    actor_id=user_id,
                    transition=transition,
                    task_repo=self.task_repo,
                )
            )
            target = workflow.status_by_id(transition.to_status_id)
            result.append(
                AvailableTransition(
                    transition=transition,
                    to_status_key=target.key if target else "",
                    blocked_by=reasons,
                )
            )
        return result

    async def history(self, task_id: str, user_id: str) -> list[TaskAuditRecordResult]:
        """Return the task's status-change history, oldest first."""
        await self.get_task(task_id, user_id)
        return await self.audit_repo.list_for_task(task_id)

    async def perform_transition(
        self, task_id: str, ref: TransitionRef, user_id: str
    ) -> TransitionOutcome:
        """Transition a task the user can see; non-members get TaskNotFound."""
        await self.get_task(task_id, user_id)
        return await self.engine.perform_transition(task_id, ref, user_id)
