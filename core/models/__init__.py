# =============================================================================
# core/models/ - Data Models
# =============================================================================
# This package contains the schemas shared by the API, services and workers:
# - user.py: User CRUD schemas and the API response envelope
# - activity_log.py: StructuredLogRecord (one per logged request)
# - job.py: Background job records, options and results
# - entities.py: SQLAlchemy ORM entities
#
# These models define the "contract" between API, workers and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# User Models - Registration and listing
# -----------------------------------------------------------------------------
from .user import (
    ApiResponse,
    ResponseStatus,
    UserCreate,
    UserResponse,
)

# -----------------------------------------------------------------------------
# Activity Log Models - Request logging pipeline
# -----------------------------------------------------------------------------
from .activity_log import StructuredLogRecord

# -----------------------------------------------------------------------------
# Job Models - Background queue
# -----------------------------------------------------------------------------
from .job import (
    WELCOME_USER_JOB,
    JobOptions,
    JobRecord,
    JobState,
    WelcomeJobResult,
)

# -----------------------------------------------------------------------------
# ORM Entities
# -----------------------------------------------------------------------------
from .entities import UserEntity

__all__ = [
    # User
    "ApiResponse",
    "ResponseStatus",
    "UserCreate",
    "UserResponse",
    # Activity log
    "StructuredLogRecord",
    # Jobs
    "WELCOME_USER_JOB",
    "JobOptions",
    "JobRecord",
    "JobState",
    "WelcomeJobResult",
    # Entities
    "UserEntity",
]
