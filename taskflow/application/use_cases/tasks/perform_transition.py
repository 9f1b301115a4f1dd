"""Transition engine: executes one status change as a single atomic, audited write.

Order of checks is fixed: load, resolve, authorise, guards, then the write.
Nothing is written before authorisation and guards have passed, and the
status write, its side effects and the audit record share one transaction.
The engine never retries; a lost race surfaces as ConcurrentModificationException.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from taskflow.application.dtos.audit import TaskAuditRecordCreate
from taskflow.application.dtos.task import TransitionOutcome
from taskflow.application.services.guards import GuardContext, enforce_guards
from taskflow.application.services.post_functions import (
    PostFunctionContext,
    collect_post_function_values,
)
from taskflow.domain.exceptions import (
    ConcurrentModificationException,
    GuardFailedException,
    PermissionDeniedException,
    TaskNotFoundException,
    TransitionNotFoundException,
    ValidationException,
)
from taskflow.domain.value_objects import ById, ByKey, TransitionRef
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    traced,
)
from taskflow.shared.utils import utc_now

if TYPE_CHECKING:
    from datetime import datetime

    from taskflow.application.dtos.task import TaskResult
    from taskflow.application.interfaces.repositories import (
        ITaskAuditRepository,
        ITaskRepository,
        IWorkflowRepository,
    )
    from taskflow.application.interfaces.services import IPermissionOracle
    from taskflow.domain.entities.workflow import (
        StatusEntity,
        TransitionEntity,
        WorkflowEntity,
    )

logger = get_logger(__name__)


def resolve_transition(
    task: TaskResult, workflow: WorkflowEntity, ref: TransitionRef
) -> TransitionEntity:
    """Find the edge a request refers to, relative to the task's current status.

    By id: the edge must be in the task's workflow and leave the current status
    (or be global). By key: an edge declared on the current status wins, then a
    global edge with that key.
    """
    status_id = task.status_id or ""
    if isinstance(ref, ById):
        transition = workflow.transition_by_id(ref.transition_id)
        if transition is None:
            raise TransitionNotFoundException(
                task.id, transition_id=ref.transition_id, current_status_id=status_id
            )
        if not transition.leaves(status_id):
            raise TransitionNotFoundException(
                task.id,
                transition_id=ref.transition_id,
                current_status_id=status_id,
                reason="not_from_current_status",
            )
        return transition
    if isinstance(ref, ByKey):
        transition = workflow.resolve_key(status_id, ref.transition_key)
        if transition is None:
            raise TransitionNotFoundException(
                task.id, transition_key=ref.transition_key, current_status_id=status_id
            )
        return transition
    raise TypeError(f"Unsupported transition reference: {ref!r}")


def completion_change(
    current: StatusEntity | None, target: StatusEntity, now: datetime
) -> dict[str, Any]:
    """Return the completed_at write implied by moving from current to target."""
    was_done = current is not None and current.is_done
    if target.is_done and not was_done:
        return {"completed_at": now}
    if was_done and not target.is_done:
        return {"completed_at": None}
    return {}


class TransitionEngine:
    """Performs transitions for tasks bound to a workflow (stateless; one instance per request)."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        workflow_repo: IWorkflowRepository,
        audit_repo: ITaskAuditRepository,
        permission_oracle: IPermissionOracle,
    ) -> None:
        self.task_repo = task_repo
        self.workflow_repo = workflow_repo
        self.audit_repo = audit_repo
        self.permission_oracle = permission_oracle

    async def load(self, task_id: str) -> tuple[TaskResult, WorkflowEntity]:
        """Load a task and its workflow graph; the task must be using a workflow."""
        task = await self.task_repo.get_by_id(task_id)
        if task is None:
            raise TaskNotFoundException(task_id)
        if task.workflow_id is None or task.status_id is None:
            raise ValidationException(
                "Task is not using a workflow", field="workflow_id"
            )
        workflow = await self.workflow_repo.get_by_id(task.workflow_id)
        if workflow is None:
            raise ValidationException(
                f"Workflow {task.workflow_id} of task {task_id} no longer exists",
                field="workflow_id",
            )
        return task, workflow

    async def may_perform(
        self, task: TaskResult, transition: TransitionEntity, user_id: str
    ) -> bool:
        """Return True if user passes the permission gate of transition."""
        is_admin = await self.permission_oracle.is_space_admin(user_id, task.space_id)
        if transition.is_global:
            return is_admin
        if transition.required_permission is None or is_admin:
            return True
        return await self.permission_oracle.has_permission(
            user_id, task.space_id, transition.required_permission
        )

    async def authorize(
        self, task: TaskResult, transition: TransitionEntity, user_id: str
    ) -> None:
        """Raise PermissionDeniedException unless user may take transition.

        Global edges are reserved for space admins. Otherwise a declared
        required_permission must be held; space admins bypass it.
        """
        if await self.may_perform(task, transition, user_id):
            return
        raise PermissionDeniedException(
            transition.required_permission,
            space_id=task.space_id,
            requires_space_admin=transition.is_global,
        )

    async def _revalidate(
        self, task: TaskResult, transition: TransitionEntity
    ) -> None:
        """Re-read the edge inside the write transaction; definition edits abort the write."""
        fresh = await self.workflow_repo.get_transition(transition.workflow_id, transition.id)
        if fresh is None:
            raise ConcurrentModificationException(
                task.id, task.version, reason="transition_removed"
            )
        if (
            fresh.from_status_id != transition.from_status_id
            or fresh.to_status_id != transition.to_status_id
            or fresh.is_global != transition.is_global
        ):
            raise ConcurrentModificationException(
                task.id, task.version, reason="transition_changed"
            )

    @traced("task.perform_transition")
    async def perform_transition(
        self, task_id: str, ref: TransitionRef, user_id: str
    ) -> TransitionOutcome:
        """Move a task along one edge of its workflow.

        Args:
            task_id: Task to transition.
            ref: ById(transition_id) or ByKey(transition_key).
            user_id: Acting user.

        Returns:
            TransitionOutcome with the updated task, the edge taken and the audit record id.

        Raises:
            TaskNotFoundException: task does not exist.
            ValidationException: task is not bound to a workflow.
            TransitionNotFoundException: no matching edge leaves the current status.
            PermissionDeniedException: user fails the permission gate.
            GuardFailedException: one or more guards failed (all listed).
            ConcurrentModificationException: another write won; re-read and resubmit.
        """
        add_span_attributes(task_id=task_id, user_id=user_id)
        task, workflow = await self.load(task_id)
        transition = resolve_transition(task, workflow, ref)
        add_span_attributes(transition_key=transition.transition_key)

        try:
            await self.authorize(task, transition, user_id)
            await enforce_guards(
                GuardContext(
                    task=task,
                    actor_id=user_id,
                    transition=transition,
                    task_repo=self.task_repo,
                )
            )
        except (PermissionDeniedException, GuardFailedException) as e:
            logger.info(
                "Transition rejected: task=%s transition=%s kind=%s",
                task.id,
                transition.transition_key,
                e.error_kind,
            )
            add_span_event("transition.rejected", {"error_kind": e.error_kind})
            raise

        target = workflow.status_by_id(transition.to_status_id)
        if target is None:
            raise ConcurrentModificationException(
                task.id, task.version, reason="transition_changed"
            )
        await self._revalidate(task, transition)

        now = utc_now()
        values: dict[str, Any] = collect_post_function_values(
            PostFunctionContext(task=task, actor_id=user_id, transition=transition)
        )
        values.update(completion_change(workflow.status_by_id(task.status_id), target, now))
        values["status_id"] = target.id
        values["updated_at"] = now

        updated = await self.task_repo.update_status_if_version(
            task.id,
            expected_version=task.version,
            expected_status_id=task.status_id,
            values=values,
        )
        if updated is None:
            logger.warning(
                "Transition lost race: task=%s transition=%s expected_version=%s",
                task.id,
                transition.transition_key,
                task.version,
            )
            raise ConcurrentModificationException(task.id, task.version)

        current = workflow.status_by_id(task.status_id)
        record = await self.audit_repo.append(
            TaskAuditRecordCreate(
                task_id=task.id,
                space_id=task.space_id,
                user_id=user_id,
                from_status_id=task.status_id,
                to_status_id=target.id,
                transition_id=transition.id,
                transition_key=transition.transition_key,
                timestamp=now,
                metadata={
                    "workflow_id": workflow.id,
                    "workflow_version": workflow.version,
                    "from_status_key": current.key if current else None,
                    "to_status_key": target.key,
                    "task_version": updated.version,
                    "is_global": transition.is_global,
                },
            )
        )
        logger.info(
            "Transition committed: task=%s %s -> %s via %s (version %s)",
            task.id,
            current.key if current else None,
            target.key,
            transition.transition_key,
            updated.version,
        )
        return TransitionOutcome(
            task=updated, transition=transition, audit_record_id=record.id
        )
