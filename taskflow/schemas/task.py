"""Task and transition API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskflow.application.dtos.task import TaskCreate
from taskflow.core.constants import TASK_PRIORITY_MAX_LENGTH
from taskflow.schemas.workflow import TransitionResponse


class TaskCreateRequest(BaseModel):
    """Request body for creating a task; it starts at its workflow's initial status."""

    title: str = Field(..., min_length=1, max_length=500)
    template_id: str | None = None
    description: str | None = None
    assignee_id: str | None = None
    priority: str | None = Field(default=None, max_length=TASK_PRIORITY_MAX_LENGTH)
    due_at: datetime | None = None
    sprint_id: str | None = None
    parent_id: str | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    def to_create(self) -> TaskCreate:
        return TaskCreate(**self.model_dump())


class TaskResponse(BaseModel):
    """Task."""

    model_config = ConfigDict(from_attributes=True)

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


class TransitionRequest(BaseModel):
    """Request body for POST /tasks/{task_id}/transitions. Send exactly one field."""

    transition_id: str | None = None
    transition_key: str | None = Field(default=None, max_length=64)


class TransitionOutcomeResponse(BaseModel):
    """Committed transition: updated task, edge taken, audit record id."""

    model_config = ConfigDict(from_attributes=True)

    task: TaskResponse
    transition: TransitionResponse
    audit_record_id: str


class GuardReason(BaseModel):
    """A guard that does not currently hold."""

    guard: str
    message: str


class AvailableTransitionResponse(BaseModel):
    """An edge the caller may attempt from the task's current status."""

    model_config = ConfigDict(from_attributes=True)

    transition: TransitionResponse
    to_status_key: str
    blocked_by: list[GuardReason]


class TaskAuditResponse(BaseModel):
    """One status change of a task."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    task_id: str
    space_id: str
    user_id: str
    from_status_id: str | None
    to_status_id: str
    transition_id: str
    transition_key: str
    activity_type: str
    timestamp: datetime
    metadata: dict[str, Any]
