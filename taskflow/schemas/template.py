"""Task template API schemas."""

from pydantic import BaseModel, ConfigDict


class TemplateWorkflowBindingRequest(BaseModel):
    """Bind a template to a workflow of the same space; null unbinds."""

    workflow_id: str | None


class TaskTemplateResponse(BaseModel):
    """Task template."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    space_id: str
    name: str
    description: str | None
    workflow_id: str | None
