"""Persistence models: ORM entities and mixins."""

from taskflow.infrastructure.persistence.models.mixins import (
    CuidMixin,
    JSONType,
    SpaceMixin,
    SpaceScopedModel,
    TimestampMixin,
    UserAuditMixin,
    VersionedMixin,
)
from taskflow.infrastructure.persistence.models.space import (
    Space,
    SpaceMember,
    SpaceRole,
    SpaceRolePermission,
)
from taskflow.infrastructure.persistence.models.task import Task
from taskflow.infrastructure.persistence.models.task_audit import TaskAuditRecord
from taskflow.infrastructure.persistence.models.task_template import TaskTemplate
from taskflow.infrastructure.persistence.models.workflow import (
    Workflow,
    WorkflowStatus,
    WorkflowTransition,
)
from taskflow.infrastructure.persistence.models.workflow_audit import (
    WorkflowAuditRecord,
)

__all__ = [
    "Space",
    "SpaceMember",
    "SpaceRole",
    "SpaceRolePermission",
    "Workflow",
    "WorkflowStatus",
    "WorkflowTransition",
    "TaskTemplate",
    "Task",
    "TaskAuditRecord",
    "WorkflowAuditRecord",
    "CuidMixin",
    "JSONType",
    "SpaceMixin",
    "SpaceScopedModel",
    "TimestampMixin",
    "UserAuditMixin",
    "VersionedMixin",
]
