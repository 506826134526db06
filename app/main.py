# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the User Service API.
# create_app() wires settings, database, queue, activity logging, middleware,
# exception handlers and routers into one FastAPI application.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy.engine import Engine

from app.activity_logging import ActivityLoggingRoute
from app.config import Settings, get_settings
from app.exceptions import (
    UserServiceException,
    rate_limit_exceeded_handler,
    unexpected_exception_handler,
    user_service_exception_handler,
    validation_exception_handler,
)
from app.middleware import SecurityHeadersMiddleware
from app.routers import health, users
from core.services.activity_log_service import (
    ActivityLogDispatcher,
    ActivityLogPublisher,
    LoggingLogSink,
    LogSink,
)
from lib.database import create_db_engine, create_session_factory, init_schema
from lib.job_queue import JobQueue

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging from the DEBUG / ENABLE_LOGGING switches."""
    if settings.DEBUG:
        level = logging.DEBUG
    elif settings.ENABLE_LOGGING:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    if not settings.ENABLE_LOGGING:
        logger.warning("Logging is disabled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: create missing tables
    - Shutdown: flush pending activity logs, close database connections
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info(f"Starting User Service in {settings.ENVIRONMENT} mode")
    if settings.DB_AUTO_CREATE:
        init_schema(app.state.engine)

    yield

    # Shutdown
    logger.info("Shutting down User Service")
    await app.state.activity_log_dispatcher.drain()
    app.state.engine.dispose()
    logger.info("Database connections closed")


def create_app(
    settings: Settings | None = None,
    *,
    engine: Engine | None = None,
    job_queue: JobQueue | None = None,
    log_sinks: list[LogSink] | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted
        engine: Database engine; built from settings when omitted
        job_queue: Queue for background jobs; Celery-backed when omitted
        log_sinks: Activity log sinks; a LoggingLogSink when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    if engine is None:
        engine = create_db_engine(settings)

    if job_queue is None:
        from workers.celery_app import create_celery_app

        job_queue = JobQueue(create_celery_app(settings))

    dispatcher = ActivityLogDispatcher()
    for sink in log_sinks if log_sinks is not None else [LoggingLogSink()]:
        dispatcher.register(sink)

    app = FastAPI(
        title="User Service API",
        description="User registration and listing with activity logging and welcome jobs.",
        version=settings.APP_VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Users", "description": "Register and list users"},
            {"name": "Health", "description": "API health and readiness checks"},
        ],
    )
    app.router.route_class = ActivityLoggingRoute

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.job_queue = job_queue
    app.state.activity_log_dispatcher = dispatcher
    app.state.activity_log_publisher = ActivityLogPublisher(dispatcher)

    # Per-app limiter: request counters are not shared between app instances
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.RATE_LIMIT],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        enabled=settings.RATE_LIMIT_ENABLED,
    )

    # =========================================================================
    # Middleware (last added runs outermost)
    # =========================================================================

    # Innermost: throttled responses still get CORS and security headers
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MINIMUM_SIZE)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    app.add_exception_handler(UserServiceException, user_service_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)

    # =========================================================================
    # Routers
    # =========================================================================

    app.include_router(
        users.router,
        prefix=f"{settings.API_PATH}/users",
        tags=["Users"]
    )
    app.include_router(
        health.router,
        prefix=settings.API_PATH,
        tags=["Health"]
    )

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint - returns API info."""
        return {
            "name": "User Service API",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": f"{settings.API_PATH}/health",
        }

    return app


app = create_app()
