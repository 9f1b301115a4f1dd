"""Persistence repositories (implement the application-layer repository protocols)."""

from taskflow.infrastructure.persistence.repositories.task_audit_repo import (
    TaskAuditRepository,
)
from taskflow.infrastructure.persistence.repositories.task_repo import TaskRepository
from taskflow.infrastructure.persistence.repositories.task_template_repo import (
    TaskTemplateRepository,
)
from taskflow.infrastructure.persistence.repositories.workflow_audit_repo import (
    WorkflowAuditRepository,
)
from taskflow.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowRepository,
)

__all__ = [
    "TaskAuditRepository",
    "TaskRepository",
    "TaskTemplateRepository",
    "WorkflowAuditRepository",
    "WorkflowRepository",
]
