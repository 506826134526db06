# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the User Service:
# - test_models.py: Pydantic model validation
# - test_config.py: Settings resolution
# - test_activity_log.py: Log dispatcher and publisher
# - test_activity_logging_route.py: One activity record per request
# - test_user_service.py: Registration and listing rules
# - test_job_queue.py: Enqueue and typed queue errors
# - test_welcome_worker.py / test_tasks.py: Welcome job processing
# - test_api.py: HTTP endpoints, middleware and error bodies
#
# Run tests with: pytest
# =============================================================================
