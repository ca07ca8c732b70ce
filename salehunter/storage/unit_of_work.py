"""
Unit of Work: one session, one transaction, every repository bound to it.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from .models import ProductImage, ProductPrice, ProductView, UserFavorite
from .product_repository import ProductRatingRepository, ProductRepository
from .repository import Repository
from .store_repository import StoreRepository
from .user_repository import UserRepository


class UnitOfWork:
    """
    Groups the repositories a service operation needs around a single
    AsyncSession. Writes made through any repository are committed (or
    rolled back) together.

    Usage:
        async with session_factory() as session:
            uow = UnitOfWork(session)
            user = await uow.users.get_by_email("a@b.c")
            ...
            await uow.commit()
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.stores = StoreRepository(session)
        self.products = ProductRepository(session)
        self.ratings = ProductRatingRepository(session)
        self.images = Repository(session, ProductImage)
        self.prices = Repository(session, ProductPrice)
        self.favorites = Repository(session, UserFavorite)
        self.views = Repository(session, ProductView)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
