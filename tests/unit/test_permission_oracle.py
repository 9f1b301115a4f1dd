"""Tests for PermissionOracle policies and membership caching."""

import pytest

from taskflow.application.dtos.space import SpaceMembershipResult
from taskflow.application.services.permission_oracle import (
    PermissionOracle,
    permission_cache_key,
)
from taskflow.domain.exceptions import PermissionDeniedException


class MockResolver:
    """Membership lookup that counts how often it is asked."""

    def __init__(self, *memberships: SpaceMembershipResult) -> None:
        self.memberships = {(m.user_id, m.space_id): m for m in memberships}
        self.calls = 0

    async def get_membership(self, user_id: str, space_id: str):
        self.calls += 1
        return self.memberships.get((user_id, space_id))


class MockCache:
    """Dict-backed ICacheService."""

    def __init__(self) -> None:
        self.store: dict[str, object] = {}

    def is_available(self) -> bool:
        return True

    async def get(self, key: str):
        return self.store.get(key)

    async def set(self, key: str, value, ttl: int = 300) -> bool:
        self.store[key] = value
        return True

    async def delete(self, key: str) -> bool:
        self.store.pop(key, None)
        return True

    async def delete_pattern(self, pattern: str) -> int:
        prefix = pattern.rstrip("*")
        doomed = [k for k in self.store if k.startswith(prefix)]
        for key in doomed:
            del self.store[key]
        return len(doomed)


def _member(user_id: str, role: str, role_id: str | None = None, granted=()) -> SpaceMembershipResult:
    return SpaceMembershipResult(
        space_id="space-1",
        user_id=user_id,
        role=role,
        role_id=role_id,
        granted_permissions=frozenset(granted),
    )


@pytest.fixture
def resolver() -> MockResolver:
    return MockResolver(
        _member("owner", "OWNER"),
        _member("admin", "ADMIN"),
        _member("member", "MEMBER"),
        _member("viewer", "VIEWER"),
        _member("qa", "MEMBER", role_id="role-qa", granted={"approve_tasks"}),
    )


@pytest.fixture
def oracle(resolver: MockResolver) -> PermissionOracle:
    return PermissionOracle(resolver)


@pytest.mark.parametrize(
    ("user_id", "permission", "expected"),
    [
        ("owner", "approve_tasks", True),
        ("admin", "delete_workflows", True),
        ("member", "create_tasks", True),
        ("member", "edit_workflows", False),
        ("viewer", "view_tasks", True),
        ("viewer", "create_tasks", False),
        ("qa", "approve_tasks", True),
        # A custom role replaces the built-in MEMBER grants.
        ("qa", "create_tasks", False),
        ("stranger", "view_space", False),
    ],
)
async def test_has_permission(oracle, user_id, permission, expected) -> None:
    assert await oracle.has_permission(user_id, "space-1", permission) is expected


async def test_membership_is_per_space(oracle) -> None:
    assert await oracle.has_permission("owner", "space-2", "view_space") is False


@pytest.mark.parametrize(
    ("user_id", "expected"),
    [("owner", True), ("admin", True), ("member", False), ("stranger", False)],
)
async def test_is_space_admin(oracle, user_id, expected) -> None:
    assert await oracle.is_space_admin(user_id, "space-1") is expected


async def test_require_permission_raises_with_details(oracle) -> None:
    await oracle.require_permission("member", "space-1", "create_tasks")
    with pytest.raises(PermissionDeniedException) as exc_info:
        await oracle.require_permission("member", "space-1", "edit_workflows")
    assert exc_info.value.details["required_permission"] == "edit_workflows"
    assert exc_info.value.details["space_id"] == "space-1"


async def test_require_space_admin(oracle) -> None:
    await oracle.require_space_admin("admin", "space-1")
    with pytest.raises(PermissionDeniedException) as exc_info:
        await oracle.require_space_admin("member", "space-1")
    assert exc_info.value.details["requires_space_admin"] is True


async def test_membership_is_cached(resolver) -> None:
    cache = MockCache()
    oracle = PermissionOracle(resolver, cache=cache, cache_ttl=60)

    assert await oracle.has_permission("qa", "space-1", "approve_tasks")
    assert await oracle.has_permission("qa", "space-1", "approve_tasks")
    assert resolver.calls == 1
    assert cache.store[permission_cache_key("space-1", "qa")] == {
        "role": "MEMBER",
        "role_id": "role-qa",
        "granted": ["approve_tasks"],
    }


async def test_non_members_are_not_cached(resolver) -> None:
    cache = MockCache()
    oracle = PermissionOracle(resolver, cache=cache)
    await oracle.has_permission("stranger", "space-1", "view_space")
    await oracle.has_permission("stranger", "space-1", "view_space")
    assert resolver.calls == 2
    assert cache.store == {}


async def test_invalidate_forces_reload(resolver) -> None:
    cache = MockCache()
    oracle = PermissionOracle(resolver, cache=cache)
    await oracle.has_permission("member", "space-1", "view_tasks")
    await oracle.has_permission("admin", "space-1", "view_tasks")

    await oracle.invalidate_user_cache("member", "space-1")
    await oracle.has_permission("member", "space-1", "view_tasks")
    assert resolver.calls == 3

    await oracle.invalidate_space_cache("space-1")
    assert cache.store == {}
