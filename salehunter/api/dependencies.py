"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Database sessions and the per-request unit of work
- Shared collaborators (hasher, token issuer, geocoder, storage, email)
- Request context and authentication
- Per-request domain services
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from salehunter.api.middleware.logging import get_request_id
from salehunter.errors import ForbiddenError, UnauthorizedError
from salehunter.integrations import LocalImageStorage, NominatimGeocoder, SmtpEmailSender
from salehunter.security import InvalidToken, PasswordHasher, TokenIssuer
from salehunter.services import (
    AuthService,
    ProductService,
    RequestContext,
    StoreService,
    UserService,
)
from salehunter.storage import database
from salehunter.storage.unit_of_work import UnitOfWork

DEV_JWT_SECRET = "salehunter-development-secret-change-me-0123456789"


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./salehunter.db"
    database_echo: bool = False

    # Tokens
    jwt_secret: str = DEV_JWT_SECRET
    jwt_issuer: str = "SaleHunter"
    jwt_audience: str = "SaleHunterUsers"
    jwt_expiry_minutes: int = 60
    jwt_refresh_expiry_days: int = 7

    # Password reset
    password_reset_expiry_hours: int = 1
    app_base_url: str = "http://localhost:8000/"

    # SMTP
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: str = "no-reply@salehunter.local"
    smtp_use_tls: bool = True

    # Image storage
    media_root: str = "./media"
    media_base_url: str = "/media"

    # Geocoding
    geocoder_base_url: str = "https://nominatim.openstreetmap.org"
    geocoder_user_agent: str = "SaleHunter/1.0"

    # Per-call timeout for geocoding, image storage and email
    external_timeout_seconds: float = 10.0

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        environment = os.getenv("SALEHUNTER_ENV", cls.environment)
        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            if environment != "development":
                raise RuntimeError("JWT_SECRET must be set outside development")
            jwt_secret = DEV_JWT_SECRET

        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            jwt_secret=jwt_secret,
            jwt_issuer=os.getenv("JWT_ISSUER", cls.jwt_issuer),
            jwt_audience=os.getenv("JWT_AUDIENCE", cls.jwt_audience),
            jwt_expiry_minutes=int(os.getenv("JWT_EXPIRY_MINUTES", cls.jwt_expiry_minutes)),
            jwt_refresh_expiry_days=int(os.getenv("JWT_REFRESH_EXPIRY_DAYS", cls.jwt_refresh_expiry_days)),
            password_reset_expiry_hours=int(
                os.getenv("PASSWORD_RESET_EXPIRY_HOURS", cls.password_reset_expiry_hours)
            ),
            app_base_url=os.getenv("APP_BASE_URL", cls.app_base_url),
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=int(os.getenv("SMTP_PORT", cls.smtp_port)),
            smtp_username=os.getenv("SMTP_USERNAME") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            smtp_from=os.getenv("SMTP_FROM", cls.smtp_from),
            smtp_use_tls=os.getenv("SMTP_USE_TLS", "true").lower() == "true",
            media_root=os.getenv("MEDIA_ROOT", cls.media_root),
            media_base_url=os.getenv("MEDIA_BASE_URL", cls.media_base_url),
            geocoder_base_url=os.getenv("GEOCODER_BASE_URL", cls.geocoder_base_url),
            geocoder_user_agent=os.getenv("GEOCODER_USER_AGENT", cls.geocoder_user_agent),
            external_timeout_seconds=float(
                os.getenv("EXTERNAL_TIMEOUT_SECONDS", cls.external_timeout_seconds)
            ),
            environment=environment,
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Database
# =============================================================================

# Global engine and session factory (initialized in lifespan)
_engine = None
_async_session_factory = None


def init_database(settings: Settings) -> None:
    """Initialize database engine and session factory."""
    global _engine, _async_session_factory

    _engine = database.create_engine(settings.database_url, echo=settings.database_echo)
    _async_session_factory = database.create_session_factory(_engine)


async def create_tables() -> None:
    if _engine is None:
        raise RuntimeError("Database not initialized.")
    await database.create_tables(_engine)


async def dispose_database() -> None:
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Yields:
        AsyncSession for database operations.
    """
    if _async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database first.")

    async with _async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_uow(db: AsyncSession = Depends(get_db)) -> UnitOfWork:
    """One unit of work per request."""
    return UnitOfWork(db)


# =============================================================================
# Shared Collaborators (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for process-wide collaborators.

    Each is created on first access; tests pass replacements to the
    constructor.
    """

    def __init__(
        self,
        settings: Settings,
        geocoder=None,
        image_storage=None,
        email_sender=None,
    ):
        self.settings = settings
        self._hasher = None
        self._token_issuer = None
        self._geocoder = geocoder
        self._image_storage = image_storage
        self._email_sender = email_sender

    @property
    def hasher(self) -> PasswordHasher:
        if self._hasher is None:
            self._hasher = PasswordHasher()
        return self._hasher

    @property
    def token_issuer(self) -> TokenIssuer:
        if self._token_issuer is None:
            self._token_issuer = TokenIssuer(
                secret=self.settings.jwt_secret,
                issuer=self.settings.jwt_issuer,
                audience=self.settings.jwt_audience,
                access_minutes=self.settings.jwt_expiry_minutes,
                refresh_days=self.settings.jwt_refresh_expiry_days,
            )
        return self._token_issuer

    @property
    def geocoder(self):
        if self._geocoder is None:
            self._geocoder = NominatimGeocoder(
                base_url=self.settings.geocoder_base_url,
                user_agent=self.settings.geocoder_user_agent,
                timeout_seconds=self.settings.external_timeout_seconds,
            )
        return self._geocoder

    @property
    def image_storage(self):
        if self._image_storage is None:
            self._image_storage = LocalImageStorage(
                root=self.settings.media_root,
                base_url=self.settings.media_base_url,
                timeout_seconds=self.settings.external_timeout_seconds,
            )
        return self._image_storage

    @property
    def email_sender(self):
        if self._email_sender is None:
            self._email_sender = SmtpEmailSender(
                host=self.settings.smtp_host,
                port=self.settings.smtp_port,
                username=self.settings.smtp_username,
                password=self.settings.smtp_password,
                from_address=self.settings.smtp_from,
                use_tls=self.settings.smtp_use_tls,
                timeout_seconds=self.settings.external_timeout_seconds,
            )
        return self._email_sender


# Global service container
_service_container: Optional[ServiceContainer] = None


def init_services(settings: Settings, **overrides) -> ServiceContainer:
    """Initialize service container."""
    global _service_container
    _service_container = ServiceContainer(settings, **overrides)
    return _service_container


def get_service_container() -> ServiceContainer:
    """Get service container instance."""
    if _service_container is None:
        return init_services(get_settings())
    return _service_container


# =============================================================================
# Authentication Dependencies
# =============================================================================

bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_service_container),
) -> RequestContext:
    """
    Request context with the caller's identity when a valid bearer
    token is present. Invalid tokens on optional routes are ignored.
    """
    request_id = get_request_id(request)
    if credentials is None:
        return RequestContext(request_id=request_id)

    try:
        claims = container.token_issuer.verify_access(credentials.credentials)
    except InvalidToken:
        return RequestContext(request_id=request_id)

    return RequestContext(
        request_id=request_id,
        user_id=int(claims["sub"]),
        role=claims.get("role"),
    )


async def get_current_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_service_container),
) -> RequestContext:
    """
    Require a valid bearer access token.

    Raises:
        UnauthorizedError: If the token is missing or invalid.
    """
    if credentials is None:
        raise UnauthorizedError("Authentication required")

    try:
        claims = container.token_issuer.verify_access(credentials.credentials)
    except InvalidToken as e:
        raise UnauthorizedError(str(e)) from e

    return RequestContext(
        request_id=get_request_id(request),
        user_id=int(claims["sub"]),
        role=claims.get("role"),
    )


async def require_admin(
    context: RequestContext = Depends(get_current_context),
) -> RequestContext:
    if not context.is_admin:
        logger.bind(request_id=context.request_id, user_id=context.user_id).warning(
            "Non-admin attempted an admin operation"
        )
        raise ForbiddenError("Administrator role required")
    return context


# =============================================================================
# Service Dependencies
# =============================================================================

def get_auth_service(
    uow: UnitOfWork = Depends(get_uow),
    container: ServiceContainer = Depends(get_service_container),
    context: RequestContext = Depends(get_optional_context),
) -> AuthService:
    """Dependency for auth service."""
    return AuthService(
        uow=uow,
        hasher=container.hasher,
        tokens=container.token_issuer,
        email_sender=container.email_sender,
        reset_expiry_hours=container.settings.password_reset_expiry_hours,
        app_base_url=container.settings.app_base_url,
        log=context.logger(),
    )


def get_store_service(
    uow: UnitOfWork = Depends(get_uow),
    container: ServiceContainer = Depends(get_service_container),
    context: RequestContext = Depends(get_optional_context),
) -> StoreService:
    """Dependency for store service."""
    return StoreService(
        uow=uow,
        geocoder=container.geocoder,
        image_storage=container.image_storage,
        log=context.logger(),
    )


def get_product_service(
    uow: UnitOfWork = Depends(get_uow),
    container: ServiceContainer = Depends(get_service_container),
    context: RequestContext = Depends(get_optional_context),
) -> ProductService:
    """Dependency for product service."""
    return ProductService(
        uow=uow,
        image_storage=container.image_storage,
        log=context.logger(),
    )


def get_user_service(
    uow: UnitOfWork = Depends(get_uow),
    container: ServiceContainer = Depends(get_service_container),
    context: RequestContext = Depends(get_optional_context),
) -> UserService:
    """Dependency for user service."""
    return UserService(
        uow=uow,
        image_storage=container.image_storage,
        log=context.logger(),
    )
