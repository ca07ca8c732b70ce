"""
Generic async repository.

Thin wrapper around an AsyncSession for a single model class. The
session (and its transaction) is owned by the UnitOfWork; repositories
only flush so generated identities are available to the caller.
"""

from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """
    CRUD operations for one model.

    Usage:
        favorites = Repository(session, UserFavorite)
        existing = await favorites.first_where(
            UserFavorite.user_id == 1,
            UserFavorite.product_id == 2,
        )
    """

    model: Type[ModelT]

    def __init__(self, session: AsyncSession, model: Optional[Type[ModelT]] = None):
        self.session = session
        if model is not None:
            self.model = model

    async def get(self, entity_id: int) -> Optional[ModelT]:
        return await self.session.get(self.model, entity_id)

    async def add(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def add_all(self, entities: Sequence[ModelT]) -> None:
        self.session.add_all(entities)
        await self.session.flush()

    async def delete(self, entity: ModelT) -> None:
        await self.session.delete(entity)
        await self.session.flush()

    async def list_all(self, limit: Optional[int] = None, offset: int = 0) -> list[ModelT]:
        stmt = select(self.model).order_by(self.model.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def first_where(self, *criteria: Any) -> Optional[ModelT]:
        stmt = select(self.model).where(*criteria).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_where(self, *criteria: Any) -> list[ModelT]:
        stmt = select(self.model).where(*criteria).order_by(self.model.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
