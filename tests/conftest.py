# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up test environment variables before any imports
# - In-memory SQLite database per test
# - Mocked job queue and a recording activity log sink
# - Async HTTP client bound to an app built by create_app()
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# app.main builds a default application at import time from the environment

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("DB_AUTO_CREATE", "true")
os.environ.setdefault("ENABLE_LOGGING", "true")

from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from core.models.activity_log import StructuredLogRecord
from core.services.user_repository import UserRepository
from lib.database import create_db_engine, create_session_factory, init_schema
from lib.job_queue import JobQueue


class RecordingSink:
    """Log sink that keeps every record it receives."""

    def __init__(self):
        self.records: list[StructuredLogRecord] = []

    def handle(self, record: StructuredLogRecord) -> None:
        self.records.append(record)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        DATABASE_URL="sqlite://",
        REDIS_URL="redis://localhost:6379/15",
        JOB_ATTEMPTS=3,
        GZIP_MINIMUM_SIZE=500,
        # Tests fire dozens of requests from one client
        RATE_LIMIT="1000/minute",
    )


@pytest.fixture
def engine(settings):
    """Fresh in-memory database with the schema created."""
    engine = create_db_engine(settings)
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def repository(session_factory):
    return UserRepository(session_factory)


@pytest.fixture
def job_queue():
    """JobQueue double that hands out sequential job ids."""
    queue = MagicMock(spec=JobQueue)
    queue.enqueue.side_effect = lambda *args, **kwargs: f"job-{queue.enqueue.call_count}"
    return queue


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def app(settings, engine, job_queue, sink):
    """Application wired to the test database, mocked queue and recording sink."""
    from app.main import create_app

    return create_app(settings, engine=engine, job_queue=job_queue, log_sinks=[sink])


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_user():
    """Registration payload from the welcome scenario."""
    return {"name": "Ann", "email": "ann@x.com", "age": 30}
