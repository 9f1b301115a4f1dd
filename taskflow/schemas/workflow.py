"""Workflow definition API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskflow.application.dtos.workflow import (
    StatusInput,
    TransitionInput,
    WorkflowCreate,
    WorkflowUpdate,
)
from taskflow.core.constants import PERMISSION_KEY_MAX_LENGTH, WORKFLOW_NAME_MAX_LENGTH


class StatusIn(BaseModel):
    """One status in a workflow definition. Keys are normalised server-side."""

    key: str = Field(..., min_length=1, max_length=64)
    name: str | None = Field(default=None, max_length=255)
    color: str | None = Field(default=None, max_length=32)
    category: str = Field(default="TODO", description="TODO, IN_PROGRESS or DONE")
    is_done: bool = False
    is_initial: bool = False
    position: int | None = Field(default=None, ge=0)

    def to_input(self) -> StatusInput:
        return StatusInput(
            key=self.key,
            name=self.name or "",
            color=self.color,
            category=self.category,
            is_done=self.is_done,
            is_initial=self.is_initial,
            position=self.position,
        )


class ActionSpec(BaseModel):
    """Guard or post-function declaration: a type plus its parameters."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(..., min_length=1, max_length=64)


class TransitionIn(BaseModel):
    """One transition. Omit from_key (and set is_global) for an admin-only global edge."""

    to_key: str = Field(..., min_length=1, max_length=64)
    transition_key: str = Field(..., min_length=1, max_length=64)
    from_key: str | None = Field(default=None, max_length=64)
    name: str | None = Field(default=None, max_length=255)
    guards: list[ActionSpec] = Field(default_factory=list)
    required_permission: str | None = Field(default=None, max_length=PERMISSION_KEY_MAX_LENGTH)
    post_functions: list[ActionSpec] = Field(default_factory=list)
    is_global: bool = False

    def to_input(self) -> TransitionInput:
        return TransitionInput(
            to_key=self.to_key,
            transition_key=self.transition_key,
            from_key=self.from_key,
            name=self.name,
            guards=[g.model_dump() for g in self.guards],
            required_permission=self.required_permission,
            post_functions=[p.model_dump() for p in self.post_functions],
            is_global=self.is_global,
        )


class WorkflowCreateRequest(BaseModel):
    """Request body for creating a workflow with its full graph."""

    name: str = Field(..., min_length=1, max_length=WORKFLOW_NAME_MAX_LENGTH)
    description: str | None = None
    is_default: bool = False
    statuses: list[StatusIn]
    transitions: list[TransitionIn] = Field(default_factory=list)
    linked_template_ids: list[str] = Field(default_factory=list)

    def to_create(self) -> WorkflowCreate:
        return WorkflowCreate(
            name=self.name,
            description=self.description,
            is_default=self.is_default,
            statuses=[s.to_input() for s in self.statuses],
            transitions=[t.to_input() for t in self.transitions],
            linked_template_ids=list(self.linked_template_ids),
        )


class WorkflowUpdateRequest(BaseModel):
    """Request body for updating a workflow (partial).

    Sending statuses and/or transitions replaces that part of the graph;
    the result is validated as a whole. An explicit null description clears
    it; linked_template_ids replaces the set of bound templates.
    """

    name: str | None = Field(default=None, min_length=1, max_length=WORKFLOW_NAME_MAX_LENGTH)
    description: str | None = None
    is_default: bool | None = None
    statuses: list[StatusIn] | None = None
    transitions: list[TransitionIn] | None = None
    linked_template_ids: list[str] | None = None

    def to_update(self) -> WorkflowUpdate:
        return WorkflowUpdate(
            name=self.name,
            description=self.description,
            clear_description=(
                "description" in self.model_fields_set and self.description is None
            ),
            is_default=self.is_default,
            statuses=(
                [s.to_input() for s in self.statuses] if self.statuses is not None else None
            ),
            transitions=(
                [t.to_input() for t in self.transitions]
                if self.transitions is not None
                else None
            ),
            linked_template_ids=self.linked_template_ids,
        )


class StatusResponse(BaseModel):
    """Workflow status."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    key: str
    name: str
    color: str | None
    category: str
    position: int
    is_done: bool
    is_initial: bool


class TransitionResponse(BaseModel):
    """Workflow transition."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    from_status_id: str | None
    to_status_id: str
    transition_key: str
    name: str
    position: int
    guards: list[dict[str, Any]]
    required_permission: str | None
    post_functions: list[dict[str, Any]]
    is_global: bool


class WorkflowResponse(BaseModel):
    """Workflow with its full graph."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    space_id: str
    name: str
    description: str | None
    is_default: bool
    version: int
    statuses: list[StatusResponse]
    transitions: list[TransitionResponse]
    linked_template_ids: list[str]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class WorkflowAuditResponse(BaseModel):
    """One entry of a workflow's change history."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    space_id: str
    version: int
    action: str
    actor_id: str | None
    timestamp: datetime
    metadata: dict[str, Any]
