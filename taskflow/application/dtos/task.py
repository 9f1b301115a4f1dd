"""DTOs for tasks and transitions (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from taskflow.domain.entities.workflow import TransitionEntity


@dataclass(frozen=True)
class TaskCreate:
    """Input for creating a task. Status and workflow are chosen by the service."""

    title: str
    template_id: str | None = None
    description: str | None = None
    assignee_id: str | None = None
    priority: str | None = None
    due_at: datetime | None = None
    sprint_id: str | None = None
    parent_id: str | None = None
    custom_fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TaskResult:
    """Task read-model (result of get_by_id, create, conditional update)."""

    id: str
    space_id: str
    template_id: str | None
    workflow_id: str | None
    status_id: str | None
    version: int
    title: str
    description: str | None
    assignee_id: str | None
    priority: str | None
    due_at: datetime | None
    sprint_id: str | None
    parent_id: str | None
    custom_fields: dict[str, Any]
    completed_at: datetime | None
    created_by: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of a committed transition."""

    task: TaskResult
    transition: TransitionEntity
    audit_record_id: str


@dataclass(frozen=True)
class AvailableTransition:
    """An edge the user may attempt now; blocked_by lists guards that would fail."""

    transition: TransitionEntity
    to_status_key: str
    blocked_by: list[dict[str, str]] = field(default_factory=list)
