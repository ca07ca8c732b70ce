"""
Integration tests for StoreService against an in-memory database.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from salehunter.services import StoreService
from salehunter.storage.models import Product, Store, User

from tests.conftest import FakeGeocoder, FakeImageStorage, PNG_BASE64

CAIRO = (Decimal("30.0444"), Decimal("31.2357"))
GIZA = (Decimal("30.0131"), Decimal("31.2089"))
ALEXANDRIA = (Decimal("31.2001"), Decimal("29.9187"))


async def make_user(uow, email: str = "seller@example.com") -> User:
    user = User(name="Seller", email=email, password_hash="x", role="Customer", is_active=True)
    await uow.users.add(user)
    await uow.commit()
    return user


def make_service(uow, coordinates=CAIRO, fail_uploads: bool = False) -> StoreService:
    return StoreService(
        uow=uow,
        geocoder=FakeGeocoder(coordinates),
        image_storage=FakeImageStorage(fail=fail_uploads),
    )


class TestCreateStore:
    """Tests for store creation."""

    async def test_create_geocodes_address(self, uow, sample_store_data):
        user = await make_user(uow)
        service = make_service(uow)

        result = await service.create_store(user.id, sample_store_data)

        assert result.code == 201
        assert result.message == "Store created successfully"
        store = result.data
        assert (store.latitude, store.longitude) == CAIRO
        assert store.user_id == user.id
        assert user.store_id == store.id
        assert user.has_store()
        assert service.geocoder.calls == [sample_store_data["address"]]

    async def test_geocoding_failure_uses_client_coordinates(self, uow, sample_store_data):
        user = await make_user(uow)
        service = make_service(uow, coordinates=None)
        fields = dict(sample_store_data, latitude=Decimal("29.5"), longitude=Decimal("31.0"))

        result = await service.create_store(user.id, fields)

        assert result.succeeded
        assert result.data.latitude == Decimal("29.5")
        assert result.data.longitude == Decimal("31.0")

    async def test_geocoding_failure_without_coordinates_falls_back_to_origin(self, uow, sample_store_data):
        user = await make_user(uow)

        result = await make_service(uow, coordinates=None).create_store(user.id, sample_store_data)

        assert result.succeeded
        assert result.data.latitude == Decimal(0)
        assert result.data.longitude == Decimal(0)

    async def test_second_store_rejected(self, uow, db_session, sample_store_data):
        user = await make_user(uow)
        service = make_service(uow)
        await service.create_store(user.id, sample_store_data)

        result = await service.create_store(user.id, dict(sample_store_data, name="Another"))

        assert result.code == 400
        assert result.message == "User already has a store"
        count = await db_session.scalar(select(func.count()).select_from(Store))
        assert count == 1

    @pytest.mark.parametrize("missing", ["name", "address"])
    async def test_blank_name_or_address_rejected(self, uow, sample_store_data, missing):
        user = await make_user(uow)

        result = await make_service(uow).create_store(user.id, dict(sample_store_data, **{missing: "  "}))

        assert result.code == 400
        assert result.message == "Name and Address are required"

    async def test_unknown_user(self, uow, sample_store_data):
        result = await make_service(uow).create_store(404, sample_store_data)

        assert result.code == 404

    async def test_logo_uploaded(self, uow, sample_store_data):
        user = await make_user(uow)
        service = make_service(uow)

        result = await service.create_store(user.id, dict(sample_store_data, logo_base64=PNG_BASE64))

        assert result.data.logo_url == f"/media/stores/{user.id}/main.png"

    async def test_logo_failure_does_not_block_creation(self, uow, sample_store_data):
        user = await make_user(uow)

        result = await make_service(uow, fail_uploads=True).create_store(
            user.id, dict(sample_store_data, logo_base64=PNG_BASE64)
        )

        assert result.succeeded
        assert result.data.logo_url is None


class TestReadAndUpdateStore:
    """Tests for store reads, updates and deletion."""

    @pytest.fixture
    async def owned_store(self, uow, sample_store_data):
        user = await make_user(uow)
        result = await make_service(uow).create_store(user.id, sample_store_data)
        return user, result.data

    async def test_get_store_includes_products(self, uow, owned_store):
        _, store = owned_store
        await uow.products.add(Product(name="Phone", price=Decimal("10"), sale_percent=0, category="Phones", store_id=store.id))
        await uow.commit()

        result = await make_service(uow).get_store(store.id)

        assert [product.name for product in result.data.products] == ["Phone"]

    async def test_get_missing_store(self, uow):
        result = await make_service(uow).get_store(999)

        assert result.code == 404
        assert result.message == "Store not found"

    async def test_get_store_by_user(self, uow, owned_store):
        user, store = owned_store

        result = await make_service(uow).get_store_by_user(user.id)

        assert result.data.id == store.id

    async def test_get_store_by_user_without_store(self, uow):
        user = await make_user(uow, "buyer@example.com")

        result = await make_service(uow).get_store_by_user(user.id)

        assert result.code == 404
        assert result.message == "Store not found for this user"

    async def test_sparse_update(self, uow, owned_store):
        user, store = owned_store

        result = await make_service(uow).update_store(
            store.id,
            user.id,
            {"phone": "+201111111111", "name": "", "description": None},
        )

        assert result.succeeded
        assert result.data.phone == "+201111111111"
        assert result.data.name == "Corner Electronics"
        assert result.data.description == "Phones, laptops and accessories"
        assert result.data.updated_at is not None

    async def test_new_address_regeocoded(self, uow, owned_store):
        user, store = owned_store

        result = await make_service(uow, coordinates=ALEXANDRIA).update_store(
            store.id, user.id, {"address": "Corniche, Alexandria"}
        )

        assert result.data.address == "Corniche, Alexandria"
        assert (result.data.latitude, result.data.longitude) == ALEXANDRIA

    async def test_failed_regeocode_keeps_coordinates(self, uow, owned_store):
        user, store = owned_store

        result = await make_service(uow, coordinates=None).update_store(
            store.id, user.id, {"address": "Somewhere unknown"}
        )

        assert (result.data.latitude, result.data.longitude) == CAIRO

    async def test_update_by_non_owner_rejected(self, uow, owned_store):
        _, store = owned_store
        other = await make_user(uow, "other@example.com")

        result = await make_service(uow).update_store(store.id, other.id, {"name": "Mine now"})

        assert result.code == 400
        assert result.message == "You are not authorized to update this store"

    async def test_delete_store_clears_user_link(self, uow, owned_store):
        user, store = owned_store

        result = await make_service(uow).delete_store(store.id, user.id)

        assert result.data is True
        assert user.store_id is None
        assert await uow.stores.get(store.id) is None

    async def test_delete_by_non_owner_rejected(self, uow, owned_store):
        _, store = owned_store
        other = await make_user(uow, "other@example.com")

        result = await make_service(uow).delete_store(store.id, other.id)

        assert result.code == 400


class TestStoreSearch:
    """Tests for text and proximity search."""

    @pytest.fixture
    async def stores(self, uow):
        created = {}
        for email, name, category, coordinates in [
            ("a@example.com", "Cairo Phones", "Electronics", CAIRO),
            ("b@example.com", "Giza Bakery", "Food", GIZA),
            ("c@example.com", "Alex Phones", "Electronics", ALEXANDRIA),
        ]:
            user = await make_user(uow, email)
            result = await make_service(uow, coordinates=coordinates).create_store(
                user.id,
                {"name": name, "address": name, "category": category},
            )
            created[name] = result.data
        return created

    async def test_nearby(self, uow, stores):
        result = await make_service(uow).get_nearby_stores(*CAIRO, radius_km=10)

        assert {store.name for store in result.data} == {"Cairo Phones", "Giza Bakery"}

    async def test_nearby_small_radius(self, uow, stores):
        result = await make_service(uow).get_nearby_stores(*CAIRO, radius_km=1)

        assert [store.name for store in result.data] == ["Cairo Phones"]

    async def test_text_search_matches_name_and_category(self, uow, stores):
        service = make_service(uow)

        by_name = await service.search_stores(query="phones")
        by_category = await service.search_stores(query="food")

        assert {store.name for store in by_name.data} == {"Cairo Phones", "Alex Phones"}
        assert [store.name for store in by_category.data] == ["Giza Bakery"]

    async def test_location_then_text(self, uow, stores):
        result = await make_service(uow).search_stores(
            query="phones",
            latitude=CAIRO[0],
            longitude=CAIRO[1],
            radius_km=10,
        )

        assert [store.name for store in result.data] == ["Cairo Phones"]

    async def test_list_all(self, uow, stores):
        result = await make_service(uow).get_all_stores()

        assert len(result.data) == 3
