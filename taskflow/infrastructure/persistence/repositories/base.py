"""Base repository: generic lookup, create and delete for one ORM model."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with ORM-level get, create and delete.

    Subclasses expose application DTOs or domain entities, never ORM rows;
    these helpers are the building blocks they map from.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def _get_orm_by_id(self, entity_id: str) -> ModelType | None:
        """Return a single row by primary key, or None (always refreshed from the database)."""
        model: Any = self.model
        result = await self.db.execute(
            select(self.model)
            .where(model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _create(self, obj: ModelType) -> ModelType:
        """Persist a new row and reload server defaults (timestamps)."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def _delete(self, obj: ModelType) -> None:
        await self.db.delete(obj)
        await self.db.flush()
