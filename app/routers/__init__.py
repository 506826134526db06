# =============================================================================
# app/routers/ - API Endpoint Definitions
# =============================================================================
# - users.py: User registration and listing
# - health.py: Health, readiness and liveness checks
#
# Every router uses ActivityLoggingRoute so each request is activity-logged.
# =============================================================================

from . import health, users

__all__ = ["health", "users"]
