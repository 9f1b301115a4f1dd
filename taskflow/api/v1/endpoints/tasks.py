"""Task API: creation, reads, available transitions, transitions and history."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from taskflow.api.v1.dependencies import (
    get_current_user_id,
    get_task_service,
    get_task_service_for_write,
    require_space_permission,
)
from taskflow.application.use_cases.tasks import TaskService
from taskflow.core.constants import CREATE_TASKS
from taskflow.core.limiter import limit_transitions, limit_writes
from taskflow.domain.value_objects import transition_ref_from_request
from taskflow.schemas.task import (
    AvailableTransitionResponse,
    TaskAuditResponse,
    TaskCreateRequest,
    TaskResponse,
    TransitionOutcomeResponse,
    TransitionRequest,
)

router = APIRouter()


@router.post("/spaces/{space_id}/tasks", response_model=TaskResponse, status_code=201)
@limit_writes
async def create_task(
    request: Request,
    space_id: str,
    body: TaskCreateRequest,
    service: Annotated[TaskService, Depends(get_task_service_for_write)],
    user_id: Annotated[
        str, Depends(require_space_permission(CREATE_TASKS, for_write=True))
    ],
):
    """Create a task at the initial status of its template's (or the space default) workflow."""
    task = await service.create_task(space_id, body.to_create(), user_id)
    return TaskResponse.model_validate(task)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    service: Annotated[TaskService, Depends(get_task_service)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Get a task."""
    task = await service.get_task(task_id, user_id)
    return TaskResponse.model_validate(task)


@router.get(
    "/tasks/{task_id}/transitions",
    response_model=list[AvailableTransitionResponse],
)
async def available_transitions(
    task_id: str,
    service: Annotated[TaskService, Depends(get_task_service)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Transitions the caller may attempt now, with any guards that would block them."""
    options = await service.available_transitions(task_id, user_id)
    return [AvailableTransitionResponse.model_validate(o) for o in options]


@router.post(
    "/tasks/{task_id}/transitions",
    response_model=TransitionOutcomeResponse,
)
@limit_transitions
async def perform_transition(
    request: Request,
    task_id: str,
    body: TransitionRequest,
    service: Annotated[TaskService, Depends(get_task_service_for_write)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Move the task along one edge, by transition_id or transition_key (exactly one).

    409 ConcurrentModification means another request changed the task first:
    re-read it and resubmit if the transition still applies.
    """
    ref = transition_ref_from_request(body.transition_id, body.transition_key)
    outcome = await service.perform_transition(task_id, ref, user_id)
    return TransitionOutcomeResponse.model_validate(outcome)


@router.get("/tasks/{task_id}/history", response_model=list[TaskAuditResponse])
async def task_history(
    task_id: str,
    service: Annotated[TaskService, Depends(get_task_service)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """Status-change history of a task, oldest first."""
    records = await service.history(task_id, user_id)
    return [TaskAuditResponse.model_validate(r) for r in records]
