# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .activity_log_service import (
    ActivityLogDispatcher,
    ActivityLogPublisher,
    LoggingLogSink,
    LogSink,
    Subscription,
)
from .user_repository import UserRepository
from .user_service import UserService
from .welcome_worker import (
    InvalidJobPayloadError,
    PermanentJobError,
    WelcomeUserWorker,
)

__all__ = [
    "ActivityLogDispatcher",
    "ActivityLogPublisher",
    "LoggingLogSink",
    "LogSink",
    "Subscription",
    "UserRepository",
    "UserService",
    "InvalidJobPayloadError",
    "PermanentJobError",
    "WelcomeUserWorker",
]
