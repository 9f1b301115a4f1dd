"""Workflow definition API: thin routes delegating to WorkflowDefinitionService.

All routes are scoped to /spaces/{space_id}/workflows. Reads require
view_space; writes require the matching workflow permission.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from taskflow.api.v1.dependencies import (
    get_workflow_service,
    get_workflow_service_for_write,
    require_space_permission,
)
from taskflow.application.use_cases.workflows import WorkflowDefinitionService
from taskflow.core.constants import (
    CREATE_WORKFLOWS,
    DELETE_WORKFLOWS,
    EDIT_WORKFLOWS,
    VIEW_SPACE,
)
from taskflow.core.limiter import limit_writes
from taskflow.schemas.workflow import (
    WorkflowAuditResponse,
    WorkflowCreateRequest,
    WorkflowResponse,
    WorkflowUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=list[WorkflowResponse])
async def list_workflows(
    space_id: str,
    service: Annotated[WorkflowDefinitionService, Depends(get_workflow_service)],
    _: Annotated[str, Depends(require_space_permission(VIEW_SPACE))],
):
    """List the space's workflows in creation order."""
    workflows = await service.list_workflows(space_id)
    return [WorkflowResponse.model_validate(w) for w in workflows]


@router.post("", response_model=WorkflowResponse, status_code=201)
@limit_writes
async def create_workflow(
    request: Request,
    space_id: str,
    body: WorkflowCreateRequest,
    service: Annotated[
        WorkflowDefinitionService, Depends(get_workflow_service_for_write)
    ],
    user_id: Annotated[
        str, Depends(require_space_permission(CREATE_WORKFLOWS, for_write=True))
    ],
):
    """Create a workflow with its full graph (validated as a whole)."""
    workflow = await service.create_workflow(space_id, body.to_create(), user_id)
    return WorkflowResponse.model_validate(workflow)


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(
    space_id: str,
    workflow_id: str,
    service: Annotated[WorkflowDefinitionService, Depends(get_workflow_service)],
    _: Annotated[str, Depends(require_space_permission(VIEW_SPACE))],
):
    """Get a workflow of this space with its statuses and transitions."""
    workflow = await service.get_workflow(space_id, workflow_id)
    return WorkflowResponse.model_validate(workflow)


@router.patch("/{workflow_id}", response_model=WorkflowResponse)
@limit_writes
async def update_workflow(
    request: Request,
    space_id: str,
    workflow_id: str,
    body: WorkflowUpdateRequest,
    service: Annotated[
        WorkflowDefinitionService, Depends(get_workflow_service_for_write)
    ],
    user_id: Annotated[
        str, Depends(require_space_permission(EDIT_WORKFLOWS, for_write=True))
    ],
):
    """Update attributes and/or replace the graph (statuses and transitions)."""
    workflow = await service.update_workflow(
        space_id, workflow_id, body.to_update(), user_id
    )
    return WorkflowResponse.model_validate(workflow)


@router.delete("/{workflow_id}", status_code=204)
@limit_writes
async def delete_workflow(
    request: Request,
    space_id: str,
    workflow_id: str,
    service: Annotated[
        WorkflowDefinitionService, Depends(get_workflow_service_for_write)
    ],
    user_id: Annotated[
        str, Depends(require_space_permission(DELETE_WORKFLOWS, for_write=True))
    ],
) -> Response:
    """Delete a workflow no task or template uses."""
    await service.delete_workflow(space_id, workflow_id, user_id)
    return Response(status_code=204)


@router.post(
    "/{workflow_id}/duplicate", response_model=WorkflowResponse, status_code=201
)
@limit_writes
async def duplicate_workflow(
    request: Request,
    space_id: str,
    workflow_id: str,
    service: Annotated[
        WorkflowDefinitionService, Depends(get_workflow_service_for_write)
    ],
    user_id: Annotated[
        str, Depends(require_space_permission(CREATE_WORKFLOWS, for_write=True))
    ],
):
    """Copy a workflow's graph into a new, non-default workflow."""
    workflow = await service.duplicate_workflow(space_id, workflow_id, user_id)
    return WorkflowResponse.model_validate(workflow)


@router.get("/{workflow_id}/history", response_model=list[WorkflowAuditResponse])
async def workflow_history(
    space_id: str,
    workflow_id: str,
    service: Annotated[WorkflowDefinitionService, Depends(get_workflow_service)],
    _: Annotated[str, Depends(require_space_permission(VIEW_SPACE))],
):
    """Definition change history of a workflow, oldest first."""
    records = await service.workflow_history(space_id, workflow_id)
    return [WorkflowAuditResponse.model_validate(r) for r in records]
