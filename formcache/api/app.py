"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from formcache import __version__
from formcache.api.routes import admin, cache, health
from formcache.config import get_settings
from formcache.core import StoreUnavailableError, ValidationError
from formcache.services import FixtureCacheService, create_fixture_cache_service
from formcache.utilities.logging import setup_logging

logger = logging.getLogger(__name__)


def _error_body(message: str, code: str) -> dict:
    return {"error": {"message": message, "code": code}}


def create_app(service: FixtureCacheService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Pre-built service (tests). When omitted, the lifespan handler
            initializes the database and builds one from the environment.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler - runs on startup and shutdown."""
        settings = get_settings()
        setup_logging(settings.log_level)

        owned = service is None
        if owned:
            from formcache.database import init_db

            logger.info(f"Initializing database at {settings.db_path}")
            init_db(settings.db_path)
            app.state.fixture_cache_service = create_fixture_cache_service(settings=settings)
        else:
            app.state.fixture_cache_service = service

        logger.info("formcache ready")
        yield

        if owned:
            app.state.fixture_cache_service.close()
        logger.info("formcache stopped")

    app = FastAPI(
        title="formcache API",
        description="Team fixtures cache and form service",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(str(exc), "VALIDATION_ERROR"),
        )

    @app.exception_handler(StoreUnavailableError)
    async def store_error_handler(request: Request, exc: StoreUnavailableError):
        logger.error(f"Store unavailable for {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_error_body("Cache store unavailable", "STORE_UNAVAILABLE"),
        )

    app.include_router(health.router, tags=["Health"])
    app.include_router(cache.router, prefix="/api/v1", tags=["Cache"])
    app.include_router(admin.router, prefix="/api/v1", tags=["Cache Admin"])

    return app
