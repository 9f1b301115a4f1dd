"""Shared enumerations for Taskflow.

Cross-cutting enums used by application and infrastructure (audit actions,
space member roles). Workflow-domain enums (e.g. StatusCategory) live in
taskflow.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class SpaceMemberRole(_ValuesMixin, str, Enum):
    """Coarse membership role of a user inside a space."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"


class WorkflowAuditAction(_ValuesMixin, str, Enum):
    """Lifecycle actions recorded for workflow definitions."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DUPLICATED = "DUPLICATED"
    DELETED = "DELETED"
    TEMPLATE_BOUND = "TEMPLATE_BOUND"
    TEMPLATE_UNBOUND = "TEMPLATE_UNBOUND"


class TaskActivityType(_ValuesMixin, str, Enum):
    """Activity types written to the task audit log."""

    STATUS_CHANGED = "STATUS_CHANGED"
