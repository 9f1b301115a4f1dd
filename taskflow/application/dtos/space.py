"""DTOs for space membership (consumed by the permission oracle)."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SpaceMembershipResult:
    """A user's membership in a space and the permission keys their role grants."""

    space_id: str
    user_id: str
    role: str
    role_id: str | None = None
    granted_permissions: frozenset[str] = field(default_factory=frozenset)
