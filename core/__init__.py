# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas and ORM entities
# - services/: User use cases, activity log publishing, welcome job worker
#
# Code in this package should NOT import from Celery.
# This keeps the logic testable and reusable.
# =============================================================================
