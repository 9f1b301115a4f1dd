"""Pytest configuration and fixtures for taskflow.

Uses taskflow.main:app for HTTP tests and taskflow.infrastructure.persistence.database
for DB-dependent fixtures. Tests run against a throwaway SQLite file
(sqlite+aiosqlite); tables are created from the ORM metadata for each test
and dropped afterwards. Unit tests under tests/unit use in-memory fakes and
never touch the database.
"""

import os
import tempfile

_TEST_DB_PATH = os.path.join(tempfile.mkdtemp(prefix="taskflow-tests-"), "taskflow.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_PATH}"
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["REDIS_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession  # noqa: E402

from taskflow.core.config import get_settings  # noqa: E402

get_settings.cache_clear()

from taskflow.infrastructure.persistence import database  # noqa: E402
from taskflow.infrastructure.persistence.database import Base  # noqa: E402
from taskflow.infrastructure.persistence.models import (  # noqa: E402
    Space,
    SpaceMember,
    SpaceRole,
    SpaceRolePermission,
)
from taskflow.infrastructure.security.jwt import create_access_token  # noqa: E402
from taskflow.main import app  # noqa: E402

SPACE_ID = "space-main"
OTHER_SPACE_ID = "space-other"

# user id -> coarse role in SPACE_ID; u-approver also gets the custom QA role.
SPACE_MEMBERS = {
    "u-owner": "OWNER",
    "u-admin": "ADMIN",
    "u-member": "MEMBER",
    "u-viewer": "VIEWER",
    "u-approver": "MEMBER",
}
QA_ROLE_PERMISSIONS = ("view_space", "view_tasks", "create_tasks", "approve_tasks")


@pytest.fixture
async def db_engine() -> AsyncEngine:
    """Fresh schema for one test; dropped and disposed on teardown."""
    engine = database.get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await database.dispose_engine()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncSession:
    """Session for repository/integration tests. Rolls back after test."""
    async with database.AsyncSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def seeded_space(db_engine: AsyncEngine) -> str:
    """Two spaces; SPACE_ID has one member per role plus a custom QA role. Committed."""
    async with database.AsyncSessionLocal() as session:
        async with session.begin():
            session.add_all(
                [
                    Space(id=SPACE_ID, name="Main", slug="main"),
                    Space(id=OTHER_SPACE_ID, name="Other", slug="other"),
                ]
            )
            await session.flush()
            role = SpaceRole(id="role-qa", space_id=SPACE_ID, name="QA")
            session.add(role)
            await session.flush()
            session.add_all(
                SpaceRolePermission(role_id=role.id, permission_key=key)
                for key in QA_ROLE_PERMISSIONS
            )
            for user_id, member_role in SPACE_MEMBERS.items():
                session.add(
                    SpaceMember(
                        space_id=SPACE_ID,
                        user_id=user_id,
                        role=member_role,
                        role_id=role.id if user_id == "u-approver" else None,
                    )
                )
            session.add(SpaceMember(space_id=OTHER_SPACE_ID, user_id="u-outsider", role="OWNER"))
    return SPACE_ID


@pytest.fixture
async def client(db_engine: AsyncEngine) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    """Factory: Authorization header carrying a signed token for user_id."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
