"""Space, membership and space-role ORM models (consumed by the permission resolver)."""

import sqlalchemy as sa
from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import (
    CuidMixin,
    SpaceScopedModel,
    TimestampMixin,
)


class Space(CuidMixin, TimestampMixin, Base):
    """Collaboration space. Table: space."""

    __tablename__ = "space"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class SpaceRole(SpaceScopedModel, Base):
    """Custom role defined inside a space. Table: space_role."""

    __tablename__ = "space_role"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("space_id", "name", name="uq_space_role_name"),)


class SpaceRolePermission(CuidMixin, Base):
    """Permission key granted (or explicitly not granted) to a space role."""

    __tablename__ = "space_role_permission"

    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("space_role.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission_key: Mapped[str] = mapped_column(String(100), nullable=False)
    granted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )

    __table_args__ = (
        UniqueConstraint("role_id", "permission_key", name="uq_space_role_permission"),
    )


class SpaceMember(SpaceScopedModel, Base):
    """User membership in a space with a coarse role and an optional custom role."""

    __tablename__ = "space_member"

    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default="MEMBER", server_default="MEMBER"
    )
    role_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("space_role.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (UniqueConstraint("space_id", "user_id", name="uq_space_member"),)
