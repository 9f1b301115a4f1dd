"""DTOs for task templates."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TaskTemplateResult:
    """Task template read-model; workflow_id is the bound workflow, if any."""

    id: str
    space_id: str
    name: str
    description: str | None
    workflow_id: str | None
