"""Base repository: generic get, create, delete on one ORM model."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from travel_crm.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository over a single model.

    Subclasses expose domain entities; the ORM-returning helpers here are for
    their internal use. Writes only flush: the surrounding session
    (get_db_transactional or the worker's session) owns the commit.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def _get_orm(self, entity_id: str) -> ModelType | None:
        """Return a single record by primary key, or None."""
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record."""
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def delete(self, obj: ModelType) -> None:
        """Delete the record."""
        await self.db.delete(obj)
        await self.db.flush()
