"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cityventure.api.router import api_router
from cityventure.config import settings
from cityventure.core.database import async_engine, async_session_factory
from cityventure.core.errors import register_exception_handlers
from cityventure.core.logging import (
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
)
from cityventure.core.permissions import (
    AuthorizationGate,
    PermissionCache,
    role_name_loader,
    session_loader,
)
from cityventure.modules.accounts.repos import account_role_id


configure_logging(settings)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Builds the permission cache and authorization gate on startup and
    tears them down on shutdown.
    """
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    cache = PermissionCache(
        session_loader(async_session_factory, account_role_id),
        ttl_seconds=settings.permission_cache_ttl_seconds,
    )
    app.state.permission_cache = cache
    app.state.authorization_gate = AuthorizationGate(
        cache, role_name_loader(async_session_factory, account_role_id)
    )
    logger.info("permission_cache_ready", ttl_seconds=cache.ttl_seconds)

    yield

    logger.info("application_shutdown")

    cache.close()
    await async_engine.dispose()
    logger.info("database_engine_disposed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.app_name,
        description="Authorization and staff onboarding for the CityVenture platform",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
        # Disable docs in production
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    cors_origins = settings.cors_origins
    if settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:5173"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Add request ID middleware (outermost, runs first)
    app.add_middleware(RequestIdMiddleware)

    # Register exception handlers for RFC 7807 error responses
    register_exception_handlers(app)

    # Include API router
    app.include_router(api_router)

    return app

