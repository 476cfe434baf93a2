"""
Main FastAPI application entry point for Rollgate.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rollgate import __version__
from rollgate.appconfig.provider import get_config_provider, reset_config_provider
from rollgate.exceptions import RollgateValidationError
from rollgate.feature_flags.router import router as feature_flags_router
from rollgate.logging import setup_logging
from rollgate.settings import get_settings

logger = structlog.get_logger(__name__)


def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map invalid caller input, such as a blank user id, to 422."""
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Load the first configuration snapshot at start-up and stop polling on exit."""
    provider = get_config_provider()
    logger.info(
        "rollgate.startup",
        version=provider.get_current_config_version(),
        polling=provider.is_polling,
    )
    yield
    reset_config_provider()
    logger.info("rollgate.shutdown")


def create_application(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Rollgate",
        description="Feature flags and operational limits over refreshable configuration",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan if use_lifespan else None,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    app.add_exception_handler(RollgateValidationError, validation_error_handler)
    app.include_router(feature_flags_router, prefix="/api")

    # Health check endpoint (public - no auth required)
    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """Health check endpoint for monitoring."""
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.environment,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    return app
