"""
==============================================================================
Product Lookup Service - Application Entry Point
==============================================================================

FastAPI application with:
- Cache-first product dataset loading at startup
- Scanned code resolution endpoints
- Health and readiness checks

The dataset must be loaded before the first request is served; a failed
acquisition aborts startup.

Usage:
------
    # Development
    uvicorn product_lookup.main:app --reload

    # Production
    uvicorn product_lookup.main:app --host 0.0.0.0 --port 8000

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from product_lookup import __version__
from product_lookup.api import api_router
from product_lookup.config import Settings, get_settings
from product_lookup.core.exceptions import register_exception_handlers
from product_lookup.services import LookupSession


# ============================================================================
# LOGGING SETUP
# ============================================================================

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

class Application:
    """
    FastAPI application factory and manager.

    Handles application lifecycle including:
    - Dataset loading on startup, cache flush on shutdown
    - Middleware configuration
    - Router registration
    - Exception handler setup
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[LookupSession] = None
    ):
        """
        Initialize the application.

        Args:
            settings: Settings to use (global settings if None)
            session: Pre-built lookup session (built from settings if None)
        """
        self._settings = settings or get_settings()
        self._session = session or LookupSession(self._settings)
        self._app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        app = FastAPI(
            title=self._settings.app_name,
            version=__version__,
            description="Scanned code resolution against a cached product dataset",
            lifespan=self._lifespan,
            docs_url="/docs",
            redoc_url="/redoc",
        )
        app.state.lookup_session = self._session

        self._configure_middleware(app)

        register_exception_handlers(app)

        app.include_router(api_router)

        return app

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Application lifespan manager."""
        await self._startup()
        yield
        await self._shutdown()

    async def _startup(self) -> None:
        """Application startup tasks."""
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {self._settings.app_name}")
        logger.info("=" * 60)

        await self._session.start(
            on_cache_hit=lambda: logger.info("📦 Using cached dataset, no download needed")
        )

        logger.info("=" * 60)
        logger.info(f"✅ {self._settings.app_name} ready")
        logger.info(f"📍 Running on http://{self._settings.host}:{self._settings.port}")
        logger.info(f"📖 API Docs: http://{self._settings.host}:{self._settings.port}/docs")
        logger.info("=" * 60)

    async def _shutdown(self) -> None:
        """Application shutdown tasks."""
        logger.info("🛑 Shutting down...")
        await self._session.stop()
        logger.info("✅ Shutdown complete")

    def _configure_middleware(self, app: FastAPI) -> None:
        """Configure application middleware."""
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @property
    def session(self) -> LookupSession:
        """Get the lookup session."""
        return self._session

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self._app


# ============================================================================
# APPLICATION INSTANCE
# ============================================================================

application = Application()
app = application.app


# ============================================================================
# ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "product_lookup.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
