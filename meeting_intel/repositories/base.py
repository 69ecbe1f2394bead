"""
Base repository with common CRUD operations.
"""

from typing import TypeVar, Generic, Type, Optional, List, Any
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_intel.database.models import Base
from meeting_intel.database.models.base import generate_uuid

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Repositories flush but never commit; the caller owns the transaction.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """Get entity by ID."""
        result = await self.session.execute(
            select(self.model).where(getattr(self.model, "id") == id)
        )
        return result.scalar_one_or_none()

    async def list_by(
        self,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        **filters: Any,
    ) -> List[ModelType]:
        """List entities matching equality filters."""
        query = select(self.model)
        for column, value in filters.items():
            query = query.where(getattr(self.model, column) == value)

        if order_by and hasattr(self.model, order_by):
            column = getattr(self.model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())

        if limit is not None:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, **filters: Any) -> int:
        query = select(func.count()).select_from(self.model)
        for column, value in filters.items():
            query = query.where(getattr(self.model, column) == value)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def create(self, **kwargs) -> ModelType:
        """Create a new entity."""
        if "id" not in kwargs and hasattr(self.model, "id"):
            kwargs["id"] = generate_uuid()

        entity = self.model(**kwargs)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def bulk_create(self, items: List[dict]) -> List[ModelType]:
        """Create multiple entities in one flush."""
        entities = []
        for item in items:
            if "id" not in item and hasattr(self.model, "id"):
                item["id"] = generate_uuid()
            entity = self.model(**item)
            self.session.add(entity)
            entities.append(entity)

        await self.session.flush()
        return entities

    async def update(self, id: str, **kwargs) -> Optional[ModelType]:
        """
        Update an entity.

        Unlike creation, explicit None values are written: they clear columns.
        """
        entity = await self.get_by_id(id)
        if not entity:
            return None

        for key, value in kwargs.items():
            if hasattr(entity, key):
                setattr(entity, key, value)

        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def delete_where(self, **filters: Any) -> int:
        """Delete all rows matching equality filters; returns the row count."""
        query = delete(self.model)
        for column, value in filters.items():
            query = query.where(getattr(self.model, column) == value)
        result = await self.session.execute(query)
        return result.rowcount or 0
