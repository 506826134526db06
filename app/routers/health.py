# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# =============================================================================

import logging
from datetime import datetime, timezone

import redis
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.activity_logging import ActivityLoggingRoute
from app.dependencies import SettingsDep
from lib.database import ping

logger = logging.getLogger(__name__)

router = APIRouter(route_class=ActivityLoggingRoute)


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Database-backed health check response."""
    status: str
    database: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(BaseModel):
    """Individual service checks."""
    database: str
    queue: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""
    status: str
    checks: ChecksResponse
    timestamp: str


class LivenessResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_database(request: Request) -> str:
    """Ping the database; returns "healthy" or a short failure note."""
    settings = request.app.state.settings
    try:
        ping(request.app.state.engine, timeout_ms=settings.DB_HEALTH_TIMEOUT_MS)
        return "healthy"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


def check_queue(request: Request) -> str:
    """Ping the Redis broker; returns "healthy" or a short failure note."""
    settings = request.app.state.settings
    try:
        with redis.from_url(settings.redis_url, socket_connect_timeout=1.5, socket_timeout=1.5) as client:
            client.ping()
        return "healthy"
    except Exception as e:
        logger.warning(f"Queue health check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
def health_check(request: Request, settings: SettingsDep):
    """
    Health check endpoint.

    Pings the database. Answers 503 when the database is unreachable.
    """
    database = check_database(request)
    healthy = database == "healthy"

    body = HealthResponse(
        status="ok" if healthy else "error",
        database=database,
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=settings.APP_VERSION,
    )
    if healthy:
        return body
    return JSONResponse(status_code=503, content=body.model_dump())


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Returns whether the service is ready to accept requests.
    Checks database and queue broker connectivity.
    """
    checks = ChecksResponse(
        database=check_database(request),
        queue=check_queue(request),
    )

    all_healthy = checks.database == "healthy" and checks.queue == "healthy"

    return ReadinessResponse(
        status="ready" if all_healthy else "degraded",
        checks=checks,
        timestamp=_now(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """
    Liveness check endpoint.

    Returns whether the service process is alive.
    Used by Kubernetes/Docker for restart decisions.
    """
    return LivenessResponse(
        status="alive",
        timestamp=_now(),
    )
