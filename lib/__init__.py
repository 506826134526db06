# =============================================================================
# lib/ - Standalone Infrastructure Modules
# =============================================================================
# This package wraps the external stores the service talks to:
# - database.py: SQLAlchemy engine, session factory, schema and ping helpers
# - job_queue.py: Celery-backed job queue with typed enqueue errors
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.database import (
    Base,
    DatabaseConnectionError,
    DatabaseError,
    DatabaseIntegrityError,
    create_db_engine,
    create_session_factory,
    init_schema,
    ping,
)
from lib.job_queue import (
    JOB_ROUTES,
    JobQueue,
    JobQueueError,
    QueueConnectionError,
    QueueEnqueueError,
    QueueNotInitializedError,
)

__all__ = [
    # Database
    "Base",
    "DatabaseConnectionError",
    "DatabaseError",
    "DatabaseIntegrityError",
    "create_db_engine",
    "create_session_factory",
    "init_schema",
    "ping",
    # Queue
    "JOB_ROUTES",
    "JobQueue",
    "JobQueueError",
    "QueueConnectionError",
    "QueueEnqueueError",
    "QueueNotInitializedError",
]
