"""Workflow definition use cases."""

from taskflow.application.use_cases.workflows.workflow_operations import (
    WorkflowDefinitionService,
)

__all__ = ["WorkflowDefinitionService"]
