"""Shared utilities: enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from taskflow.shared.enums import SpaceMemberRole, TaskActivityType, WorkflowAuditAction
from taskflow.shared.utils import ensure_utc, generate_cuid, utc_now

__all__ = [
    "SpaceMemberRole",
    "TaskActivityType",
    "WorkflowAuditAction",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
]
