"""Application interfaces (ports). Infrastructure provides the implementations."""

from taskflow.application.interfaces.repositories import (
    ITaskAuditRepository,
    ITaskRepository,
    ITaskTemplateRepository,
    IWorkflowAuditRepository,
    IWorkflowRepository,
)
from taskflow.application.interfaces.services import (
    ICacheService,
    IPermissionOracle,
    ISpaceMembershipResolver,
)

__all__ = [
    "ICacheService",
    "IPermissionOracle",
    "ISpaceMembershipResolver",
    "ITaskAuditRepository",
    "ITaskRepository",
    "ITaskTemplateRepository",
    "IWorkflowAuditRepository",
    "IWorkflowRepository",
]
