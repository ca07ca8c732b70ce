"""
Store Service for SaleHunter

Store CRUD with ownership checks, best-effort geocoding and logo upload,
and Haversine proximity search.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from salehunter.storage.models import Store, utcnow
from salehunter.storage.unit_of_work import UnitOfWork

from .context import present, ticks
from .result import ServiceResult

DEFAULT_RADIUS_KM = 10.0

# Text columns applied by sparse update (non-blank values only)
UPDATABLE_FIELDS = (
    "name",
    "description",
    "phone",
    "category",
    "type",
    "whatsapp_phone",
    "facebook_url",
    "instagram_url",
    "website_url",
)


class StoreService:
    """
    Store operations for one request.

    Args:
        uow: Unit of work
        geocoder: Object with async geocode(address) -> (lat, lon) | None
        image_storage: Object with async upload_base64(data, name) -> url
        log: Request-bound logger
    """

    def __init__(
        self,
        uow: UnitOfWork,
        geocoder,
        image_storage,
        log=None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.geocoder = geocoder
        self.image_storage = image_storage
        self.log = log or logger
        self.clock = clock

    async def create_store(self, user_id: int, fields: Mapping[str, Any]) -> ServiceResult:
        """
        Create the user's store.

        Geocoding and logo upload are best-effort. Coordinates fall back
        to client-supplied values, then to (0, 0).
        """
        user = await self.uow.users.get(user_id)
        if user is None:
            return ServiceResult.not_found("User not found")

        existing = await self.uow.stores.get_by_user_id(user_id)
        if existing is not None:
            self.log.warning(f"User {user_id} already has store {existing.id}")
            return ServiceResult.conflict("User already has a store")

        if not present(fields.get("name")) or not present(fields.get("address")):
            return ServiceResult.invalid("Name and Address are required")

        latitude, longitude = await self._resolve_coordinates(
            fields["address"],
            fields.get("latitude"),
            fields.get("longitude"),
        )

        store = Store(
            name=fields["name"],
            address=fields["address"],
            category=fields.get("category") or "",
            description=fields.get("description"),
            phone=fields.get("phone"),
            type=fields.get("type") or "local",
            whatsapp_phone=fields.get("whatsapp_phone"),
            facebook_url=fields.get("facebook_url"),
            instagram_url=fields.get("instagram_url"),
            website_url=fields.get("website_url"),
            latitude=latitude,
            longitude=longitude,
            user_id=user_id,
            created_at=self.clock(),
        )

        if present(fields.get("logo_base64")):
            store.logo_url = await self._upload_logo(fields["logo_base64"], f"stores/{user_id}/main")

        try:
            await self.uow.stores.add(store)
            user.store_id = store.id
            await self.uow.commit()
        except IntegrityError:
            await self.uow.rollback()
            return ServiceResult.conflict("User already has a store")

        self.log.info(f"Store {store.id} created for user {user_id}")
        return ServiceResult.created(store, "Store created successfully")

    async def get_store(self, store_id: int) -> ServiceResult:
        store = await self.uow.stores.get_with_products(store_id)
        if store is None:
            return ServiceResult.not_found("Store not found")
        return ServiceResult.ok(store)

    async def get_store_by_user(self, user_id: int) -> ServiceResult:
        store = await self.uow.stores.get_by_user_id(user_id)
        if store is None:
            return ServiceResult.not_found("Store not found for this user")
        return ServiceResult.ok(await self.uow.stores.get_with_products(store.id))

    async def get_all_stores(self) -> ServiceResult:
        return ServiceResult.ok(await self.uow.stores.list_stores())

    async def update_store(
        self,
        store_id: int,
        user_id: int,
        changes: Mapping[str, Any],
    ) -> ServiceResult:
        """
        Sparse update: only non-blank values are applied. A new address
        is re-geocoded; coordinates are kept when geocoding fails.
        """
        store = await self.uow.stores.get(store_id)
        if store is None:
            return ServiceResult.not_found("Store not found")
        if store.user_id != user_id:
            return ServiceResult.forbidden("You are not authorized to update this store")

        for field_name in UPDATABLE_FIELDS:
            value = changes.get(field_name)
            if present(value):
                setattr(store, field_name, value)

        if present(changes.get("address")):
            store.address = changes["address"]
            coordinates = await self.geocoder.geocode(store.address)
            if coordinates is not None:
                store.latitude, store.longitude = coordinates

        if present(changes.get("logo_base64")):
            logo_url = await self._upload_logo(
                changes["logo_base64"],
                f"stores/{user_id}/main-{ticks()}",
            )
            if logo_url:
                store.logo_url = logo_url

        store.updated_at = self.clock()
        await self.uow.commit()

        self.log.info(f"Store {store_id} updated")
        return ServiceResult.ok(store, "Store updated successfully")

    async def delete_store(self, store_id: int, user_id: int) -> ServiceResult:
        store = await self.uow.stores.get(store_id)
        if store is None:
            return ServiceResult.not_found("Store not found")
        if store.user_id != user_id:
            return ServiceResult.forbidden("You are not authorized to delete this store")

        await self.uow.stores.delete(store)

        user = await self.uow.users.get(user_id)
        if user is not None:
            user.store_id = None
        await self.uow.commit()

        self.log.info(f"Store {store_id} deleted")
        return ServiceResult.ok(True, "Store deleted successfully")

    # =========================================================================
    # Search
    # =========================================================================

    async def search_stores(
        self,
        query: Optional[str] = None,
        latitude: Optional[Decimal] = None,
        longitude: Optional[Decimal] = None,
        radius_km: Optional[float] = None,
    ) -> ServiceResult:
        """
        Text search, or location search narrowed by text.

        With a full (latitude, longitude, radius) triple the Haversine
        filter runs first and the text filter is applied to its result.
        """
        query = (query or "").strip()

        if latitude is not None and longitude is not None and radius_km is not None:
            stores = await self.uow.stores.get_by_location(latitude, longitude, radius_km)
            if query:
                needle = query.lower()
                stores = [store for store in stores if _matches(store, needle)]
        else:
            stores = await self.uow.stores.search_text(query)

        return ServiceResult.ok(stores)

    async def get_nearby_stores(
        self,
        latitude: Decimal,
        longitude: Decimal,
        radius_km: float = DEFAULT_RADIUS_KM,
    ) -> ServiceResult:
        stores = await self.uow.stores.get_by_location(latitude, longitude, radius_km)
        return ServiceResult.ok(stores)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _resolve_coordinates(self, address: str, latitude=None, longitude=None):
        coordinates = await self.geocoder.geocode(address)
        if coordinates is not None:
            return coordinates

        self.log.warning(f"Geocoding failed for store address '{address}'")
        if latitude is not None and longitude is not None:
            return Decimal(str(latitude)), Decimal(str(longitude))
        return Decimal(0), Decimal(0)

    async def _upload_logo(self, data: str, name: str) -> Optional[str]:
        try:
            return await self.image_storage.upload_base64(data, name)
        except Exception as e:
            self.log.warning(f"Failed to upload store logo {name}: {type(e).__name__}: {e}")
            return None


def _matches(store: Store, needle: str) -> bool:
    return (
        needle in (store.name or "").lower()
        or needle in (store.category or "").lower()
        or needle in (store.description or "").lower()
    )
