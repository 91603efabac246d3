"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketadmin.api.router import api_router
from marketadmin.config import settings
from marketadmin.core.cache import close_redis_pool
from marketadmin.core.errors import register_exception_handlers
from marketadmin.core.logging import (
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
)
from marketadmin.core.tasks import get_dispatcher
from marketadmin.modules.notifications.hub import get_notification_hub


configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Handles startup and shutdown events.
    """
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        rate_limit_backend=settings.rate_limit_backend,
    )

    yield

    logger.info("application_shutdown")

    # Let in-flight audit and notification steps finish
    dispatcher = get_dispatcher()
    await dispatcher.drain(timeout=settings.background_drain_timeout_seconds)
    logger.info("best_effort_tasks_drained", recent_failures=len(dispatcher.recent_failures))

    get_notification_hub().close()
    logger.info("notification_hub_closed")

    await close_redis_pool()
    logger.info("redis_pool_closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.app_name,
        description="Administrative action pipeline for the marketplace",
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
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=[
            "X-Request-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Add request ID middleware (outermost, runs first)
    app.add_middleware(RequestIdMiddleware)

    # Register exception handlers for JSON error responses
    register_exception_handlers(app)

    app.include_router(api_router)

    return app


app = create_app()
