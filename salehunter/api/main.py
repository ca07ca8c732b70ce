"""
SaleHunter API

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncGenerator

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from loguru import logger

from .schemas import HealthResponse
from .routes import auth, pages, products, stores, users
from .middleware import (
    setup_cors,
    setup_logging,
    setup_exception_handlers,
    LoggingConfig,
    get_cors_config,
)
from .dependencies import (
    get_settings,
    init_database,
    create_tables,
    dispose_database,
    init_services,
    Settings,
)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup: database engine, tables, shared collaborators.
    Shutdown: dispose of the engine.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting SaleHunter in {settings.environment} mode")

    try:
        init_database(settings)
        await create_tables()
        app.state.services = init_services(settings)

        logger.info("SaleHunter started successfully")
        yield
    finally:
        logger.info("Shutting down SaleHunter...")
        await dispose_database()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Settings = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="SaleHunter",
        description="Marketplace backend: stores, products, sales and nearby search.",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ==========================================================================
    # Middleware (order matters - last added = outermost)
    # ==========================================================================

    setup_exception_handlers(app)

    setup_cors(app, config=get_cors_config(settings.environment))

    # Outermost, so every response carries X-Request-ID
    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
        structured=settings.environment != "development",
        level="DEBUG" if settings.debug else "INFO",
    )

    # ==========================================================================
    # Routers
    # ==========================================================================

    api_prefix = "/api"

    app.include_router(auth.router, prefix=api_prefix)
    app.include_router(users.router, prefix=api_prefix)
    app.include_router(stores.router, prefix=api_prefix)
    app.include_router(products.router, prefix=api_prefix)

    # Password reset form linked from the reset email
    app.include_router(pages.router)

    # Uploaded images
    media_root = Path(settings.media_root)
    media_root.mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.media_base_url,
        StaticFiles(directory=str(media_root), check_dir=False),
        name="media",
    )

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check() -> HealthResponse:
        """Liveness probe."""
        return HealthResponse(
            status="Healthy",
            timestamp=datetime.now(timezone.utc),
        )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "salehunter.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        workers=1 if settings.debug else 4,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
