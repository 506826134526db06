# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# Everything is built once in create_app() and stored on app.state; these
# functions hand it to route handlers via Depends().
# =============================================================================

from typing import Annotated

from fastapi import Depends, Request

from app.config import Settings
from core.models.job import JobOptions
from core.services.user_repository import UserRepository
from core.services.user_service import UserService


def get_app_settings(request: Request) -> Settings:
    """Return the Settings the application was created with."""
    return request.app.state.settings


def get_user_service(request: Request) -> UserService:
    """
    Build the UserService for one request.

    The repository and queue are shared; the service itself is cheap.
    """
    state = request.app.state
    return UserService(
        repository=UserRepository(state.session_factory),
        job_queue=state.job_queue,
        job_options=JobOptions.from_settings(state.settings),
    )


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
