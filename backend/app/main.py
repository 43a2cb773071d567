"""Reputation Engine - FastAPI Application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from api.v1.router import api_v1_router, public_api_router
from api.routes import health
from db.database import init_db, close_db
from core.exceptions import ConfigurationError
from core.logging_config import setup_logging
from core.middleware import (
    RequestTrackingMiddleware,
    SecurityHeadersMiddleware,
    setup_exception_handlers,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    settings = get_settings()
    setup_logging()

    # Fail fast: never start without a usable master key
    try:
        settings.validate_secrets()
    except ConfigurationError as e:
        logger.critical(f"[startup] FATAL: {e.message}")
        raise

    await init_db()
    logger.info(f"[startup] {settings.APP_NAME} v{settings.APP_VERSION} started ({settings.ENVIRONMENT})")
    yield
    await close_db()
    logger.info("[shutdown] Application shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Review management core: tenant API keys, integration "
                    "credentials and reputation-gated magic-link review routing.",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestTrackingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key", "X-Request-ID"],
    )

    setup_exception_handlers(app)

    # Root health check (unversioned, for load balancers / k8s probes)
    app.include_router(health.router, prefix="/api", tags=["Health"])

    # Versioned API: all business endpoints under /api/v1
    app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)

    # API-key authenticated reporting API
    app.include_router(public_api_router, prefix=settings.PUBLIC_API_PREFIX)

    return app


app = create_app()
