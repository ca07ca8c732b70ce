"""
Product and product-rating repositories.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload

from .models import Product, ProductPrice, ProductRating
from .repository import Repository


def product_detail_options() -> list:
    """Loader options needed to render a product (store, images, ratings)."""
    return [
        selectinload(Product.store),
        selectinload(Product.images),
        selectinload(Product.ratings),
    ]


class ProductRepository(Repository[Product]):
    model = Product

    async def get_with_details(self, product_id: int) -> Optional[Product]:
        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .options(*product_detail_options())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_with_store(self, product_id: int) -> Optional[Product]:
        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .options(selectinload(Product.store))
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_store(self, store_id: int) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.store_id == store_id)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .options(*product_detail_options())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_many(self, product_ids: list[int], limit: Optional[int] = None) -> list[Product]:
        if not product_ids:
            return []
        stmt = (
            select(Product)
            .where(Product.id.in_(product_ids))
            .order_by(Product.id)
            .options(*product_detail_options())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search(
        self,
        query: Optional[str] = None,
        store_id: Optional[int] = None,
        category: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
    ) -> list[Product]:
        """
        Search products.

        Args:
            query: Substring matched against name, description and brand
            store_id: Restrict to one store
            category: Exact category
            min_price: Inclusive lower bound on price
            max_price: Inclusive upper bound on price

        Returns:
            Matching products, newest first
        """
        stmt = select(Product).options(*product_detail_options())

        if query and query.strip():
            pattern = f"%{query.strip()}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.brand.ilike(pattern),
                )
            )
        if store_id is not None:
            stmt = stmt.where(Product.store_id == store_id)
        if category and category.strip():
            stmt = stmt.where(Product.category == category)
        if min_price is not None:
            stmt = stmt.where(Product.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price <= max_price)

        stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_recent(self, limit: int = 20) -> list[Product]:
        stmt = (
            select(Product)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
            .options(*product_detail_options())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_on_sale(self, limit: int = 50) -> list[Product]:
        # Returns the most recent products without looking at sale_percent.
        return await self.get_recent(limit)

    async def get_price_history(self, product_id: int) -> list[ProductPrice]:
        stmt = (
            select(ProductPrice)
            .where(ProductPrice.product_id == product_id)
            .order_by(ProductPrice.created_at, ProductPrice.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class ProductRatingRepository(Repository[ProductRating]):
    model = ProductRating

    async def get_user_rating(self, product_id: int, user_id: int) -> Optional[ProductRating]:
        return await self.first_where(
            ProductRating.product_id == product_id,
            ProductRating.user_id == user_id,
        )

    async def get_for_product(self, product_id: int) -> list[ProductRating]:
        stmt = (
            select(ProductRating)
            .where(ProductRating.product_id == product_id)
            .order_by(ProductRating.created_at.desc(), ProductRating.id.desc())
            .options(selectinload(ProductRating.user))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
