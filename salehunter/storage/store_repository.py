"""
Store repository: ownership lookups, text search and proximity search.
"""

from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload

from .geo import within_radius
from .models import Store
from .product_repository import product_detail_options
from .repository import Repository


class StoreRepository(Repository[Store]):
    model = Store

    async def get_by_user_id(self, user_id: int) -> Optional[Store]:
        return await self.first_where(Store.user_id == user_id)

    async def get_with_products(self, store_id: int) -> Optional[Store]:
        stmt = (
            select(Store)
            .where(Store.id == store_id)
            .options(selectinload(Store.products).options(*product_detail_options()))
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_stores(self) -> list[Store]:
        stmt = select(Store).order_by(Store.created_at.desc(), Store.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search_text(self, query: str) -> list[Store]:
        """Case-insensitive substring match on name, category and description."""
        pattern = f"%{query.strip()}%"
        stmt = (
            select(Store)
            .where(
                or_(
                    Store.name.ilike(pattern),
                    Store.category.ilike(pattern),
                    Store.description.ilike(pattern),
                )
            )
            .order_by(Store.name, Store.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_location(
        self,
        latitude: Union[float, Decimal],
        longitude: Union[float, Decimal],
        radius_km: float,
    ) -> list[Store]:
        """
        Stores within radius_km of the given point.

        Linear scan over every store with known coordinates; the distance
        filter runs in Python so it behaves the same on every backend.
        """
        stmt = select(Store).where(
            Store.latitude.is_not(None),
            Store.longitude.is_not(None),
        )
        result = await self.session.execute(stmt)
        return [
            store
            for store in result.scalars().all()
            if within_radius(latitude, longitude, store.latitude, store.longitude, radius_km)
        ]
