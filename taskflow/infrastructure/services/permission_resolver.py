"""Resolves space membership and role grants from the DB (implements ISpaceMembershipResolver)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.space import SpaceMembershipResult
from taskflow.infrastructure.persistence.models.space import (
    SpaceMember,
    SpaceRolePermission,
)


class SpaceMembershipResolver:
    """Loads a member's coarse role and the granted keys of their custom role."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_membership(
        self, user_id: str, space_id: str
    ) -> SpaceMembershipResult | None:
        """Return membership for user in space, or None if the user is not a member."""
        result = await self.db.execute(
            select(SpaceMember).where(
                SpaceMember.space_id == space_id,
                SpaceMember.user_id == user_id,
            )
        )
        member = result.scalar_one_or_none()
        if member is None:
            return None

        granted: frozenset[str] = frozenset()
        if member.role_id is not None:
            rows = await self.db.execute(
                select(SpaceRolePermission.permission_key).where(
                    SpaceRolePermission.role_id == member.role_id,
                    SpaceRolePermission.granted.is_(True),
                )
            )
            granted = frozenset(row[0] for row in rows.fetchall())

        return SpaceMembershipResult(
            space_id=space_id,
            user_id=user_id,
            role=(member.role or "").upper(),
            role_id=member.role_id,
            granted_permissions=granted,
        )
