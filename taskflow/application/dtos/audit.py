"""DTOs for the append-only task and workflow audit logs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class TaskAuditRecordCreate:
    """One committed status change, written in the same transaction as the task update."""

    task_id: str
    space_id: str
    user_id: str
    from_status_id: str | None
    to_status_id: str
    transition_id: str
    transition_key: str
    timestamp: datetime
    metadata: dict[str, Any]


@dataclass(frozen=True)
class TaskAuditRecordResult:
    """Task audit read-model."""

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


@dataclass(frozen=True)
class WorkflowAuditRecordResult:
    """Workflow audit read-model."""

    id: str
    workflow_id: str
    space_id: str
    version: int
    action: str
    actor_id: str | None
    timestamp: datetime
    metadata: dict[str, Any]
