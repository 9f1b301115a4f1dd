"""SQLAlchemy mixins for common model patterns (DRY).

Provides: CuidMixin, SpaceMixin, TimestampMixin, UserAuditMixin, VersionedMixin,
the combined SpaceScopedModel, and JSONType (JSONB on PostgreSQL, JSON elsewhere).
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from taskflow.shared.utils.generators import generate_cuid

JSONType = JSON().with_variant(JSONB(), "postgresql")


class CuidMixin:
    """Mixin for models using CUID as primary key. Provides id with default generate_cuid."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class SpaceMixin:
    """Mixin for space-scoped models. Provides space_id FK to space with CASCADE delete."""

    @declared_attr
    def space_id(cls) -> Mapped[str]:
        return mapped_column(
            String,
            ForeignKey("space.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


class TimestampMixin:
    """Mixin for created_at and updated_at (server defaults, timezone-aware)."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )


class UserAuditMixin(TimestampMixin):
    """Mixin for user audit: created_by, updated_by (user ids from the identity provider)."""

    @declared_attr
    def created_by(cls) -> Mapped[str | None]:
        return mapped_column(String, nullable=True, index=True)

    @declared_attr
    def updated_by(cls) -> Mapped[str | None]:
        return mapped_column(String, nullable=True)


class VersionedMixin:
    """Mixin for optimistic locking: version integer, default 1."""

    @declared_attr
    def version(cls) -> Mapped[int]:
        return mapped_column(Integer, default=1, nullable=False)


class SpaceScopedModel(CuidMixin, SpaceMixin, TimestampMixin):
    """Combined mixin: CUID + space_id + created_at/updated_at."""

    __abstract__ = True
