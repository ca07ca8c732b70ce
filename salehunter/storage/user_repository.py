"""
User repository: lookups by credentials/tokens and the user's
favorites and view history.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .models import ProductView, User, UserFavorite
from .product_repository import product_detail_options
from .repository import Repository

VIEW_HISTORY_LIMIT = 50


class UserRepository(Repository[User]):
    model = User

    async def get_by_email(self, email: str) -> Optional[User]:
        """Exact (case-sensitive) email match."""
        return await self.first_where(User.email == email)

    async def get_by_refresh_token(self, token: str) -> Optional[User]:
        if not token:
            return None
        return await self.first_where(User.refresh_token == token)

    async def get_by_password_reset_token(self, token: str) -> Optional[User]:
        if not token:
            return None
        return await self.first_where(User.password_reset_token == token)

    async def get_with_store(self, user_id: int) -> Optional[User]:
        stmt = (
            select(User)
            .where(User.id == user_id)
            .options(selectinload(User.store))
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_favorite_products(self, user_id: int) -> list:
        stmt = (
            select(UserFavorite)
            .where(UserFavorite.user_id == user_id)
            .order_by(UserFavorite.created_at.desc(), UserFavorite.id.desc())
            .options(selectinload(UserFavorite.product).options(*product_detail_options()))
        )
        result = await self.session.execute(stmt)
        return [favorite.product for favorite in result.scalars().all()]

    async def get_favorite_product_ids(self, user_id: int) -> list[int]:
        stmt = (
            select(UserFavorite.product_id)
            .where(UserFavorite.user_id == user_id)
            .order_by(UserFavorite.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_view_history(self, user_id: int, limit: int = VIEW_HISTORY_LIMIT) -> list:
        """
        Distinct products, most recently viewed first.

        Views are sorted newest first and deduplicated by product identity
        afterwards, so a product's latest view decides its position.
        """
        stmt = (
            select(ProductView)
            .where(ProductView.user_id == user_id)
            .order_by(ProductView.viewed_at.desc(), ProductView.id.desc())
            .options(selectinload(ProductView.product).options(*product_detail_options()))
        )
        result = await self.session.execute(stmt)

        products = []
        seen: set[int] = set()
        for view in result.scalars().all():
            if view.product_id in seen:
                continue
            seen.add(view.product_id)
            products.append(view.product)
            if len(products) >= limit:
                break
        return products
