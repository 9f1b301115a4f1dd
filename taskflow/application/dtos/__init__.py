"""Application DTOs (no ORM dependency)."""

from taskflow.application.dtos.audit import (
    TaskAuditRecordCreate,
    TaskAuditRecordResult,
    WorkflowAuditRecordResult,
)
from taskflow.application.dtos.space import SpaceMembershipResult
from taskflow.application.dtos.task import (
    AvailableTransition,
    TaskCreate,
    TaskResult,
    TransitionOutcome,
)
from taskflow.application.dtos.template import TaskTemplateResult
from taskflow.application.dtos.workflow import (
    StatusInput,
    StatusToPersist,
    TransitionInput,
    TransitionToPersist,
    WorkflowCreate,
    WorkflowGraphToPersist,
    WorkflowUpdate,
)

__all__ = [
    "AvailableTransition",
    "SpaceMembershipResult",
    "StatusInput",
    "StatusToPersist",
    "TaskAuditRecordCreate",
    "TaskAuditRecordResult",
    "TaskCreate",
    "TaskResult",
    "TaskTemplateResult",
    "TransitionInput",
    "TransitionOutcome",
    "TransitionToPersist",
    "WorkflowAuditRecordResult",
    "WorkflowCreate",
    "WorkflowGraphToPersist",
    "WorkflowUpdate",
]
