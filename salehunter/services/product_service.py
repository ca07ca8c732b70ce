"""
Product Service for SaleHunter

Handles:
- Product CRUD with store-ownership checks
- Append-only price history
- Image uploads (each image best-effort)
- Favorites and view history
- Ratings (one per user and product, upserted)
- Naive recommendations
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Sequence

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from salehunter.storage.models import (
    Product,
    ProductImage,
    ProductPrice,
    ProductRating,
    ProductView,
    UserFavorite,
    utcnow,
)
from salehunter.storage.unit_of_work import UnitOfWork

from .context import present, ticks
from .result import ServiceResult

RECOMMENDATION_LIMIT = 20
ON_SALE_LIMIT = 50

UPDATABLE_TEXT_FIELDS = (
    "name",
    "name_arabic",
    "description",
    "description_arabic",
    "category",
    "category_arabic",
    "brand",
    "source_url",
)


class ProductService:
    """
    Product operations for one request.

    Args:
        uow: Unit of work
        image_storage: Object with async upload_base64(data, name) -> url
        log: Request-bound logger
    """

    def __init__(
        self,
        uow: UnitOfWork,
        image_storage,
        log=None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.image_storage = image_storage
        self.log = log or logger
        self.clock = clock

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create_product(
        self,
        user_id: int,
        fields: Mapping[str, Any],
        images: Sequence[str] = (),
    ) -> ServiceResult:
        """
        Create a product in the user's store.

        The product row, its first price-history row and every image that
        uploaded successfully are committed together.
        """
        store = await self.uow.stores.get_by_user_id(user_id)
        if store is None:
            return ServiceResult.invalid("You must have a store to create products")

        now = self.clock()
        price = Decimal(str(fields["price"]))
        product = Product(
            name=fields["name"],
            name_arabic=fields.get("name_arabic"),
            price=price,
            sale_percent=fields.get("sale_percent") or 0,
            brand=fields.get("brand"),
            category=fields.get("category") or "",
            category_arabic=fields.get("category_arabic"),
            description=fields.get("description"),
            description_arabic=fields.get("description_arabic"),
            source_url=fields.get("source_url"),
            store_id=store.id,
            created_at=now,
        )
        await self.uow.products.add(product)
        await self.uow.prices.add(ProductPrice(product_id=product.id, price=price, created_at=now))

        await self._attach_images(product.id, images, "image", start_order=0)
        await self.uow.commit()

        self.log.info(f"Product {product.id} created in store {store.id}")
        created = await self.uow.products.get_with_details(product.id)
        return ServiceResult.created(created, "Product created successfully")

    async def get_product(self, product_id: int) -> ServiceResult:
        product = await self.uow.products.get_with_details(product_id)
        if product is None:
            return ServiceResult.not_found("Product not found")
        return ServiceResult.ok(product)

    async def update_product(
        self,
        product_id: int,
        user_id: int,
        changes: Mapping[str, Any],
        new_images: Sequence[str] = (),
    ) -> ServiceResult:
        product = await self.uow.products.get_with_store(product_id)
        if product is None:
            return ServiceResult.not_found("Product not found")
        if product.store.user_id != user_id:
            return ServiceResult.forbidden("You are not authorized to update this product")

        for field_name in UPDATABLE_TEXT_FIELDS:
            value = changes.get(field_name)
            if present(value):
                setattr(product, field_name, value)

        now = self.clock()
        if changes.get("price") is not None:
            new_price = Decimal(str(changes["price"]))
            if new_price != Decimal(product.price):
                product.price = new_price
                await self.uow.prices.add(
                    ProductPrice(product_id=product_id, price=new_price, created_at=now)
                )

        if changes.get("sale_percent") is not None:
            product.sale_percent = changes["sale_percent"]

        product.updated_at = now

        if new_images:
            existing = await self.uow.images.list_where(ProductImage.product_id == product_id)
            await self._attach_images(product_id, new_images, "update", start_order=len(existing))

        await self.uow.commit()

        self.log.info(f"Product {product_id} updated")
        updated = await self.uow.products.get_with_details(product_id)
        return ServiceResult.ok(updated, "Product updated successfully")

    async def delete_product(self, product_id: int, user_id: int) -> ServiceResult:
        product = await self.uow.products.get_with_store(product_id)
        if product is None:
            return ServiceResult.not_found("Product not found")
        if product.store.user_id != user_id:
            return ServiceResult.forbidden("You are not authorized to delete this product")

        await self.uow.products.delete(product)
        await self.uow.commit()

        self.log.info(f"Product {product_id} deleted")
        return ServiceResult.ok(True, "Product deleted successfully")

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_products_by_store(self, store_id: int) -> ServiceResult:
        return ServiceResult.ok(await self.uow.products.get_by_store(store_id))

    async def search_products(
        self,
        query: Optional[str] = None,
        store_id: Optional[int] = None,
        category: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
    ) -> ServiceResult:
        products = await self.uow.products.search(
            query=query,
            store_id=store_id,
            category=category,
            min_price=min_price,
            max_price=max_price,
        )
        return ServiceResult.ok(products)

    async def get_on_sale_products(self) -> ServiceResult:
        return ServiceResult.ok(await self.uow.products.get_on_sale(ON_SALE_LIMIT))

    async def get_recommended_products(self, user_id: int) -> ServiceResult:
        """
        Recent products for users without favorites, otherwise up to
        twenty of the user's own favorites.
        """
        if await self.uow.users.get(user_id) is None:
            return ServiceResult.not_found("User not found")

        favorite_ids = await self.uow.users.get_favorite_product_ids(user_id)
        if not favorite_ids:
            products = await self.uow.products.get_recent(RECOMMENDATION_LIMIT)
        else:
            products = await self.uow.products.get_many(favorite_ids, limit=RECOMMENDATION_LIMIT)
        return ServiceResult.ok(products)

    async def get_price_history(self, product_id: int) -> ServiceResult:
        if await self.uow.products.get(product_id) is None:
            return ServiceResult.not_found("Product not found")
        return ServiceResult.ok(await self.uow.products.get_price_history(product_id))

    # =========================================================================
    # Favorites
    # =========================================================================

    async def add_to_favorites(self, user_id: int, product_id: int) -> ServiceResult:
        if await self.uow.products.get(product_id) is None:
            return ServiceResult.not_found("Product not found")

        existing = await self._favorite(user_id, product_id)
        if existing is not None:
            return ServiceResult.ok(True, "Product is already in favorites")

        try:
            await self.uow.favorites.add(
                UserFavorite(user_id=user_id, product_id=product_id, created_at=self.clock())
            )
            await self.uow.commit()
        except IntegrityError:
            # Concurrent add of the same pair
            await self.uow.rollback()
            return ServiceResult.ok(True, "Product is already in favorites")

        return ServiceResult.ok(True, "Product added to favorites")

    async def remove_from_favorites(self, user_id: int, product_id: int) -> ServiceResult:
        existing = await self._favorite(user_id, product_id)
        if existing is None:
            return ServiceResult.ok(True, "Product is not in favorites")

        await self.uow.favorites.delete(existing)
        await self.uow.commit()
        return ServiceResult.ok(True, "Product removed from favorites")

    async def get_favorite_products(self, user_id: int) -> ServiceResult:
        if await self.uow.users.get(user_id) is None:
            return ServiceResult.not_found("User not found")
        return ServiceResult.ok(await self.uow.users.get_favorite_products(user_id))

    async def _favorite(self, user_id: int, product_id: int) -> Optional[UserFavorite]:
        return await self.uow.favorites.first_where(
            UserFavorite.user_id == user_id,
            UserFavorite.product_id == product_id,
        )

    # =========================================================================
    # Views
    # =========================================================================

    async def add_product_view(self, user_id: int, product_id: int) -> ServiceResult:
        """Record a view. Never fails the caller."""
        try:
            await self.uow.views.add(
                ProductView(user_id=user_id, product_id=product_id, viewed_at=self.clock())
            )
            await self.uow.commit()
        except SQLAlchemyError as e:
            await self.uow.rollback()
            self.log.warning(f"Could not record view of product {product_id}: {e}")
            return ServiceResult.ok(True, "Product view not recorded, but continuing")
        return ServiceResult.ok(True, "Product view recorded")

    async def get_view_history(self, user_id: int) -> ServiceResult:
        if await self.uow.users.get(user_id) is None:
            return ServiceResult.not_found("User not found")
        return ServiceResult.ok(await self.uow.users.get_view_history(user_id))

    # =========================================================================
    # Ratings
    # =========================================================================

    async def add_rating(
        self,
        user_id: int,
        product_id: int,
        rating: int,
        comment: Optional[str] = None,
    ) -> ServiceResult:
        """Insert the user's rating for the product, or overwrite the existing one."""
        if await self.uow.products.get(product_id) is None:
            return ServiceResult.not_found("Product not found")

        now = self.clock()
        existing = await self.uow.ratings.get_user_rating(product_id, user_id)
        if existing is None:
            try:
                await self.uow.ratings.add(
                    ProductRating(
                        user_id=user_id,
                        product_id=product_id,
                        rating=rating,
                        comment=comment,
                        created_at=now,
                    )
                )
                await self.uow.commit()
                return ServiceResult.ok(True, "Product rating added successfully")
            except IntegrityError:
                # Concurrent first rating of the same pair
                await self.uow.rollback()
                existing = await self.uow.ratings.get_user_rating(product_id, user_id)
                if existing is None:
                    raise

        existing.rating = rating
        existing.comment = comment
        existing.updated_at = now
        await self.uow.commit()
        return ServiceResult.ok(True, "Product rating added successfully")

    async def get_product_ratings(self, product_id: int) -> ServiceResult:
        if await self.uow.products.get(product_id) is None:
            return ServiceResult.not_found("Product not found")
        return ServiceResult.ok(await self.uow.ratings.get_for_product(product_id))

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _attach_images(
        self,
        product_id: int,
        images: Sequence[str],
        prefix: str,
        start_order: int,
    ) -> int:
        """Upload images one by one; a failed upload is logged and skipped."""
        stored = 0
        for index, data in enumerate(images):
            if not present(data):
                continue
            name = f"products/{product_id}/{prefix}-{index}-{ticks()}"
            try:
                url = await self.image_storage.upload_base64(data, name)
            except Exception as e:
                self.log.warning(
                    f"Failed to upload image {index} for product {product_id}: {type(e).__name__}: {e}"
                )
                continue

            await self.uow.images.add(
                ProductImage(
                    product_id=product_id,
                    image_url=url,
                    display_order=start_order + stored,
                    created_at=self.clock(),
                )
            )
            stored += 1
        return stored
