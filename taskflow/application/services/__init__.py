"""Application services: definition validation, guards, post-functions, permission oracle."""

from taskflow.application.services.permission_oracle import PermissionOracle
from taskflow.application.services.workflow_definition_validator import (
    WorkflowDefinitionValidator,
)

__all__ = [
    "PermissionOracle",
    "WorkflowDefinitionValidator",
]
