"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the acting user, DB sessions and application
use cases. Everything is built from infrastructure implementations here;
routes depend only on these dependencies, not on infra directly.

Read routes get a plain session (get_db); write routes get a session inside
one transaction (get_db_transactional). FastAPI caches a dependency per
request, so every repository built for a request shares its session.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.services.permission_oracle import PermissionOracle
from taskflow.application.use_cases.tasks import TaskService, TransitionEngine
from taskflow.application.use_cases.workflows import WorkflowDefinitionService
from taskflow.core.config import get_settings
from taskflow.infrastructure.persistence.database import (
    get_db,
    get_db_transactional,
)
from taskflow.infrastructure.persistence.repositories import (
    TaskAuditRepository,
    TaskRepository,
    TaskTemplateRepository,
    WorkflowAuditRepository,
    WorkflowRepository,
)
from taskflow.infrastructure.security.jwt import verify_token
from taskflow.infrastructure.services import SpaceMembershipResolver

_http_bearer = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> str:
    """Return the acting user id (JWT ``sub``); raise 401 if missing or invalid."""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = verify_token(credentials.credentials)
    except ValueError as e:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    return str(payload["sub"])


def _build_oracle(request: Request, db: AsyncSession) -> PermissionOracle:
    """Permission oracle over the request session.

    Cache is set in app lifespan (app.state.cache) when Redis is enabled;
    otherwise cache is None and permission checks hit the DB only.
    """
    settings = get_settings()
    return PermissionOracle(
        membership_resolver=SpaceMembershipResolver(db),
        cache=getattr(request.app.state, "cache", None),
        cache_ttl=settings.cache_ttl_permissions,
    )


async def get_permission_oracle(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PermissionOracle:
    """Permission oracle for read routes."""
    return _build_oracle(request, db)


async def get_permission_oracle_for_write(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> PermissionOracle:
    """Permission oracle sharing the write transaction's session."""
    return _build_oracle(request, db)


def _workflow_service(db: AsyncSession) -> WorkflowDefinitionService:
    return WorkflowDefinitionService(
        workflow_repo=WorkflowRepository(db),
        task_repo=TaskRepository(db),
        template_repo=TaskTemplateRepository(db),
        audit_repo=WorkflowAuditRepository(db),
    )


async def get_workflow_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> WorkflowDefinitionService:
    """Workflow definitions for read operations (list, get, history)."""
    return _workflow_service(db)


async def get_workflow_service_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> WorkflowDefinitionService:
    """Workflow definitions for create/update/duplicate/delete/bind (transactional)."""
    return _workflow_service(db)


def _task_service(db: AsyncSession, oracle: PermissionOracle) -> TaskService:
    task_repo = TaskRepository(db)
    workflow_repo = WorkflowRepository(db)
    audit_repo = TaskAuditRepository(db)
    engine = TransitionEngine(
        task_repo=task_repo,
        workflow_repo=workflow_repo,
        audit_repo=audit_repo,
        permission_oracle=oracle,
    )
    return TaskService(
        task_repo=task_repo,
        workflow_repo=workflow_repo,
        template_repo=TaskTemplateRepository(db),
        audit_repo=audit_repo,
        permission_oracle=oracle,
        engine=engine,
    )


async def get_task_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    oracle: Annotated[PermissionOracle, Depends(get_permission_oracle)],
) -> TaskService:
    """Task reads: get, available transitions, history."""
    return _task_service(db, oracle)


async def get_task_service_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    oracle: Annotated[PermissionOracle, Depends(get_permission_oracle_for_write)],
) -> TaskService:
    """Task creation and transitions. The status update and its audit record share one transaction."""
    return _task_service(db, oracle)


def require_space_permission(permission_key: str, *, for_write: bool = False):
    """Dependency factory: require JWT auth and permission_key in the path's space.

    Returns the acting user id. Space admins hold every permission.
    """
    oracle_dep = get_permission_oracle_for_write if for_write else get_permission_oracle

    async def _require(
        space_id: str,
        user_id: Annotated[str, Depends(get_current_user_id)],
        oracle: Annotated[PermissionOracle, Depends(oracle_dep)],
    ) -> str:
        await oracle.require_permission(user_id, space_id, permission_key)
        return user_id

    return _require
