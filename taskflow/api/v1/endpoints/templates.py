"""Task template API: binding a template to the workflow its tasks follow."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from taskflow.api.v1.dependencies import (
    get_workflow_service_for_write,
    require_space_permission,
)
from taskflow.application.use_cases.workflows import WorkflowDefinitionService
from taskflow.core.constants import EDIT_TEMPLATES
from taskflow.core.limiter import limit_writes
from taskflow.schemas.template import (
    TaskTemplateResponse,
    TemplateWorkflowBindingRequest,
)

router = APIRouter()


@router.put("/{template_id}/workflow", response_model=TaskTemplateResponse)
@limit_writes
async def assign_workflow(
    request: Request,
    space_id: str,
    template_id: str,
    body: TemplateWorkflowBindingRequest,
    service: Annotated[
        WorkflowDefinitionService, Depends(get_workflow_service_for_write)
    ],
    user_id: Annotated[
        str, Depends(require_space_permission(EDIT_TEMPLATES, for_write=True))
    ],
):
    """Bind (or with null, unbind) the workflow new tasks from this template start in."""
    template = await service.assign_workflow_to_template(
        space_id, template_id, body.workflow_id, user_id
    )
    return TaskTemplateResponse.model_validate(template)
