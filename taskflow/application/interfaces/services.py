"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from taskflow.application.dtos.space import SpaceMembershipResult


# Permission oracle interface
class IPermissionOracle(Protocol):
    """Answers capability questions for a user in a space.

    Consumed by the transition engine and the API. Implementations compose
    policies (role grants, ownership, admin override) behind this one interface.
    """

    async def has_permission(self, user_id: str, space_id: str, permission_key: str) -> bool:
        """Return True if user holds permission_key in space."""

    async def is_space_admin(self, user_id: str, space_id: str) -> bool:
        """Return True if user administers space."""


# Space membership resolver interface
class ISpaceMembershipResolver(Protocol):
    """Protocol for loading a user's membership and role grants in a space."""

    async def get_membership(
        self, user_id: str, space_id: str
    ) -> SpaceMembershipResult | None:
        """Return membership with granted permission keys, or None for non-members."""


# Cache service interface
class ICacheService(Protocol):
    """Protocol for cache (e.g. Redis)."""

    def is_available(self) -> bool:
        """Return True if cache is connected and usable."""

    async def get(self, key: str) -> Any | None:
        """Return cached value or None."""

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value with TTL in seconds."""

    async def delete(self, key: str) -> bool:
        """Remove key from cache."""

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern; return count."""
