"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs or domain entities only; no infrastructure imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from taskflow.application.dtos.audit import (
        TaskAuditRecordCreate,
        TaskAuditRecordResult,
        WorkflowAuditRecordResult,
    )
    from taskflow.application.dtos.task import TaskCreate, TaskResult
    from taskflow.application.dtos.template import TaskTemplateResult
    from taskflow.application.dtos.workflow import WorkflowGraphToPersist
    from taskflow.domain.entities.workflow import TransitionEntity, WorkflowEntity


# Workflow repository interface
class IWorkflowRepository(Protocol):
    """Protocol for workflow definition repository (DIP)."""

    async def get_by_id(self, workflow_id: str) -> WorkflowEntity | None:
        """Return workflow with its full graph, or None."""

    async def get_by_id_and_space(
        self, workflow_id: str, space_id: str
    ) -> WorkflowEntity | None:
        """Return workflow only if it belongs to space."""

    async def list_by_space(self, space_id: str) -> list[WorkflowEntity]:
        """Return all workflows of a space ordered by created_at, then id."""

    async def get_default_for_space(self, space_id: str) -> WorkflowEntity | None:
        """Return the space's default workflow, if one is flagged."""

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
        """Insert workflow, statuses and transitions; return the stored graph."""

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
        """Update scalar attributes; None leaves a field unchanged.

        clear_description sets description to NULL.
        """

    async def replace_graph(
        self,
        workflow_id: str,
        graph: WorkflowGraphToPersist,
        removed_status_ids: list[str],
    ) -> None:
        """Upsert statuses by id, delete removed statuses and replace all transitions."""

    async def bump_version(self, workflow_id: str) -> int:
        """Increment the workflow version and return the new value."""

    async def clear_default(self, space_id: str, except_workflow_id: str) -> None:
        """Unset is_default on every other workflow of the space."""

    async def delete(self, workflow_id: str) -> None:
        """Delete workflow with its statuses and transitions."""

    async def get_transition(
        self, workflow_id: str, transition_id: str
    ) -> TransitionEntity | None:
        """Read one transition fresh from storage (used at commit time)."""


# Task repository interface
class ITaskRepository(Protocol):
    """Protocol for task repository (DIP)."""

    async def get_by_id(self, task_id: str) -> TaskResult | None:
        """Return task by ID."""

    async def create(
        self,
        space_id: str,
        data: TaskCreate,
        *,
        workflow_id: str | None,
        status_id: str | None,
        created_by: str | None,
    ) -> TaskResult:
        """Insert a task at version 1."""

    async def update_status_if_version(
        self,
        task_id: str,
        *,
        expected_version: int,
        expected_status_id: str | None,
        values: dict[str, Any],
    ) -> TaskResult | None:
        """Conditionally apply values and bump version.

        Matches only when the stored version and status_id equal the expected
        ones. Returns the updated task, or None when no row matched.
        """

    async def count_open_subtasks(self, task_id: str) -> int:
        """Return number of direct subtasks not yet completed."""

    async def count_by_workflow(self, workflow_id: str) -> int:
        """Return number of tasks bound to workflow."""

    async def count_by_statuses(self, status_ids: list[str]) -> int:
        """Return number of tasks currently in any of the statuses."""


# Task template repository interface
class ITaskTemplateRepository(Protocol):
    """Protocol for task template repository (DIP)."""

    async def get_by_id_and_space(
        self, template_id: str, space_id: str
    ) -> TaskTemplateResult | None:
        """Return template only if it belongs to space."""

    async def set_workflow(
        self, template_id: str, workflow_id: str | None
    ) -> TaskTemplateResult:
        """Bind (or unbind with None) a workflow."""

    async def count_by_workflow(self, workflow_id: str) -> int:
        """Return number of templates bound to workflow."""


# Task audit repository interface
class ITaskAuditRepository(Protocol):
    """Protocol for the append-only task audit log (DIP)."""

    async def append(self, data: TaskAuditRecordCreate) -> TaskAuditRecordResult:
        """Append one record. There is no update or delete."""

    async def list_for_task(self, task_id: str) -> list[TaskAuditRecordResult]:
        """Return records for task, oldest first."""


# Workflow audit repository interface
class IWorkflowAuditRepository(Protocol):
    """Protocol for the append-only workflow audit log (DIP)."""

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
        """Append one lifecycle record."""

    async def list_for_workflow(self, workflow_id: str) -> list[WorkflowAuditRecordResult]:
        """Return records for workflow, oldest first."""
