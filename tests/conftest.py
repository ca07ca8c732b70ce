"""
Pytest configuration and fixtures for SaleHunter tests.
"""

import sys
from pathlib import Path
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from salehunter.api.main import create_app
from salehunter.api.dependencies import (
    ServiceContainer,
    Settings,
    get_db,
    get_service_container,
)
from salehunter.security import PasswordHasher, TokenIssuer
from salehunter.storage import database
from salehunter.storage.models import User
from salehunter.storage.unit_of_work import UnitOfWork


# =============================================================================
# Test Settings
# =============================================================================

TEST_JWT_SECRET = "test-secret-for-salehunter-tests-0123456789abcdef"


def get_test_settings(media_root: str = "./test_media") -> Settings:
    """Return settings configured for testing."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        database_echo=False,
        jwt_secret=TEST_JWT_SECRET,
        media_root=media_root,
        environment="test",
        debug=True,
        external_timeout_seconds=2.0,
    )


# =============================================================================
# Fakes for External Services
# =============================================================================

class FakeGeocoder:
    """Returns fixed coordinates, or None when coordinates is None."""

    def __init__(self, coordinates=None):
        self.coordinates = coordinates
        self.calls: list[str] = []

    async def geocode(self, address: str):
        self.calls.append(address)
        return self.coordinates


class FakeImageStorage:
    """Records uploads; raises for every upload while `fail` is set."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads: list[str] = []

    async def upload_base64(self, data: str, name: str) -> str:
        if self.fail:
            raise OSError("disk unavailable")
        self.uploads.append(name)
        return f"/media/{name}.png"


class FakeEmailSender:
    """Records every message instead of sending it."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent: list[dict] = []

    async def send(self, to: str, subject: str, html: str) -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html})
        return self.deliver


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """In-memory database with the full schema."""
    engine = database.create_engine("sqlite+aiosqlite:///:memory:")
    await database.create_tables(engine)

    yield engine

    await database.drop_tables(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    return database.create_session_factory(async_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    """Create database session for tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def uow(db_session) -> UnitOfWork:
    return UnitOfWork(db_session)


# =============================================================================
# Collaborator Fixtures
# =============================================================================

@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher()


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(
        secret=TEST_JWT_SECRET,
        issuer="SaleHunter",
        audience="SaleHunterUsers",
    )


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def image_storage() -> FakeImageStorage:
    return FakeImageStorage()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return get_test_settings(media_root=str(tmp_path / "media"))


@pytest.fixture
def container(test_settings, hasher, geocoder, image_storage, email_sender) -> ServiceContainer:
    services = ServiceContainer(
        test_settings,
        geocoder=geocoder,
        image_storage=image_storage,
        email_sender=email_sender,
    )
    # Share the hasher so fixtures and requests agree on the scheme
    services._hasher = hasher
    return services


@pytest.fixture
def app(test_settings, session_factory, container):
    """Create test application with the database and services overridden."""
    application = create_app(test_settings)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_service_container] = lambda: container

    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# API Helpers
# =============================================================================

async def register_user(
    client: AsyncClient,
    email: str = "buyer@example.com",
    password: str = "secret123",
    name: str = "Test Buyer",
    phone_number: Optional[str] = None,
) -> dict:
    """Register through the API and return the envelope's data."""
    payload = {
        "name": name,
        "email": email,
        "password": password,
        "confirm_password": password,
    }
    if phone_number is not None:
        payload["phone_number"] = phone_number

    response = await client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def auth_headers(access_token: str) -> dict:
    return {"Authorization": f"Bearer {access_token}"}


async def promote_to_admin(session_factory, user_id: int) -> None:
    async with session_factory() as session:
        await session.execute(update(User).where(User.id == user_id).values(role="Admin"))
        await session.commit()


@pytest.fixture
def sample_store_data() -> dict:
    return {
        "name": "Corner Electronics",
        "address": "12 Tahrir Square, Cairo",
        "type": "local",
        "category": "Electronics",
        "description": "Phones, laptops and accessories",
        "phone": "+201000000000",
    }


@pytest.fixture
def sample_product_data() -> dict:
    return {
        "name": "Wireless Headphones",
        "price": "100.00",
        "sale_percent": 25,
        "brand": "Acme",
        "category": "Audio",
        "description": "Over-ear noise cancelling headphones",
    }


# 1x1 transparent PNG
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
