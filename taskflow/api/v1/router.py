"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from taskflow.api.v1.dependencies (no manual repo/service construction).
"""

from fastapi import APIRouter

from taskflow.api.v1.endpoints import health, tasks, templates, workflows

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(
    workflows.router, prefix="/spaces/{space_id}/workflows", tags=["workflows"]
)
api_router.include_router(
    templates.router, prefix="/spaces/{space_id}/templates", tags=["templates"]
)
api_router.include_router(tasks.router, tags=["tasks"])
