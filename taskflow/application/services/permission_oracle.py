"""Permission oracle: capability checks for a user in a space.

One typed interface (has_permission / is_space_admin) backed by pluggable
policies. Membership comes from ISpaceMembershipResolver and is cached when a
cache is available (5 min TTL typical).

Memberships and roles are owned by the space-membership system, not this
service. When it changes a membership or a role grant it calls
invalidate_user_cache or invalidate_space_cache so the next check re-reads
the membership instead of waiting for the TTL.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from taskflow.application.dtos.space import SpaceMembershipResult
from taskflow.core.constants import (
    CACHE_PREFIX_PERMISSION,
    DEFAULT_ROLE_PERMISSIONS,
    SPACE_ADMIN_ROLES,
)
from taskflow.domain.exceptions import PermissionDeniedException
from taskflow.shared.enums import SpaceMemberRole

if TYPE_CHECKING:
    from taskflow.application.interfaces.services import (
        ICacheService,
        ISpaceMembershipResolver,
    )

logger = logging.getLogger(__name__)


class PermissionPolicy(Protocol):
    """A single rule that may grant a permission to a member."""

    def grants(self, membership: SpaceMembershipResult, permission_key: str) -> bool: ...


class OwnerPolicy:
    """Space owners hold every permission."""

    def grants(self, membership: SpaceMembershipResult, permission_key: str) -> bool:
        return membership.role == SpaceMemberRole.OWNER.value


class AdminOverridePolicy:
    """Space admins hold every permission."""

    def grants(self, membership: SpaceMembershipResult, permission_key: str) -> bool:
        return membership.role in SPACE_ADMIN_ROLES


class RoleGrantPolicy:
    """Permission explicitly granted to the member's custom role."""

    def grants(self, membership: SpaceMembershipResult, permission_key: str) -> bool:
        return permission_key in membership.granted_permissions


class DefaultRolePolicy:
    """Built-in grants for members without a custom role."""

    def grants(self, membership: SpaceMembershipResult, permission_key: str) -> bool:
        if membership.role_id is not None:
            return False
        return permission_key in DEFAULT_ROLE_PERMISSIONS.get(membership.role, frozenset())


DEFAULT_POLICIES: tuple[PermissionPolicy, ...] = (
    OwnerPolicy(),
    AdminOverridePolicy(),
    RoleGrantPolicy(),
    DefaultRolePolicy(),
)


def permission_cache_key(space_id: str, user_id: str) -> str:
    return f"{CACHE_PREFIX_PERMISSION}:{space_id}:{user_id}"


class PermissionOracle:
    """Implements IPermissionOracle by composing policies over a membership lookup."""

    def __init__(
        self,
        membership_resolver: ISpaceMembershipResolver,
        cache: ICacheService | None = None,
        cache_ttl: int = 300,
        policies: tuple[PermissionPolicy, ...] = DEFAULT_POLICIES,
    ) -> None:
        self.membership_resolver = membership_resolver
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.policies = policies

    async def get_membership(
        self, user_id: str, space_id: str
    ) -> SpaceMembershipResult | None:
        """Return the user's membership in space (None for non-members). Uses cache if available."""
        key = permission_cache_key(space_id, user_id)
        if self.cache and self.cache.is_available():
            cached = await self.cache.get(key)
            if cached is not None:
                return SpaceMembershipResult(
                    space_id=space_id,
                    user_id=user_id,
                    role=cached["role"],
                    role_id=cached.get("role_id"),
                    granted_permissions=frozenset(cached.get("granted", [])),
                )

        membership = await self.membership_resolver.get_membership(user_id, space_id)
        if membership is not None and self.cache and self.cache.is_available():
            await self.cache.set(
                key,
                {
                    "role": membership.role,
                    "role_id": membership.role_id,
                    "granted": sorted(membership.granted_permissions),
                },
                ttl=self.cache_ttl,
            )
        return membership

    async def has_permission(self, user_id: str, space_id: str, permission_key: str) -> bool:
        """Return True if any policy grants permission_key to the user's membership."""
        membership = await self.get_membership(user_id, space_id)
        if membership is None:
            return False
        return any(p.grants(membership, permission_key) for p in self.policies)

    async def is_space_admin(self, user_id: str, space_id: str) -> bool:
        """Return True if the user is an OWNER or ADMIN member of space."""
        membership = await self.get_membership(user_id, space_id)
        return membership is not None and membership.role in SPACE_ADMIN_ROLES

    async def require_permission(
        self, user_id: str, space_id: str, permission_key: str
    ) -> None:
        """Raise PermissionDeniedException if user lacks permission_key."""
        if not await self.has_permission(user_id, space_id, permission_key):
            logger.info(
                "Permission denied: user=%s space=%s permission=%s",
                user_id,
                space_id,
                permission_key,
            )
            raise PermissionDeniedException(permission_key, space_id=space_id)

    async def require_space_admin(self, user_id: str, space_id: str) -> None:
        """Raise PermissionDeniedException unless user administers space."""
        if not await self.is_space_admin(user_id, space_id):
            raise PermissionDeniedException(space_id=space_id, requires_space_admin=True)

    async def invalidate_user_cache(self, user_id: str, space_id: str) -> None:
        """Drop one user's cached membership after the membership changed."""
        if self.cache and self.cache.is_available():
            await self.cache.delete(permission_cache_key(space_id, user_id))

    async def invalidate_space_cache(self, space_id: str) -> None:
        """Drop every cached membership of a space (a custom role's grants changed)."""
        if self.cache and self.cache.is_available():
            await self.cache.delete_pattern(f"{CACHE_PREFIX_PERMISSION}:{space_id}:*")
