"""Tests for the space permission dependency (dependency overrides, no database)."""

from typing import Annotated

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from taskflow.api.v1.dependencies import (
    get_current_user_id,
    get_permission_oracle,
    get_permission_oracle_for_write,
    require_space_permission,
)
from taskflow.core.exception_handlers import register_exception_handlers
from taskflow.domain.exceptions import PermissionDeniedException


class RecordingOracle:
    def __init__(self, granted: set[str]) -> None:
        self.granted = granted
        self.checks: list[tuple[str, str, str]] = []

    async def require_permission(self, user_id: str, space_id: str, permission_key: str) -> None:
        self.checks.append((user_id, space_id, permission_key))
        if permission_key not in self.granted:
            raise PermissionDeniedException(permission_key, space_id=space_id)


def _app(oracle: RecordingOracle) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/spaces/{space_id}/read")
    async def read(user_id: Annotated[str, Depends(require_space_permission("view_space"))]):
        return {"user_id": user_id}

    @app.post("/spaces/{space_id}/write")
    async def write(
        user_id: Annotated[
            str, Depends(require_space_permission("create_workflows", for_write=True))
        ],
    ):
        return {"user_id": user_id}

    app.dependency_overrides[get_current_user_id] = lambda: "u-1"
    app.dependency_overrides[get_permission_oracle] = lambda: oracle
    app.dependency_overrides[get_permission_oracle_for_write] = lambda: oracle
    return app


@pytest.fixture
def oracle() -> RecordingOracle:
    return RecordingOracle({"view_space"})


@pytest.fixture
async def client(oracle: RecordingOracle):
    transport = ASGITransport(app=_app(oracle))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def test_oracle_is_injected_not_read_from_query(client, oracle) -> None:
    response = await client.get("/spaces/space-1/read")
    assert response.status_code == 200, response.text
    assert response.json() == {"user_id": "u-1"}
    assert oracle.checks == [("u-1", "space-1", "view_space")]


async def test_write_dependency_checks_its_permission(client, oracle) -> None:
    response = await client.post("/spaces/space-1/write")
    assert response.status_code == 403
    assert response.json()["details"]["required_permission"] == "create_workflows"
    assert oracle.checks == [("u-1", "space-1", "create_workflows")]
