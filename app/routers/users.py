# =============================================================================
# app/routers/users.py - User Endpoints
# =============================================================================
# Handles user registration and listing.
# Handlers are plain functions: FastAPI runs them in its threadpool, so the
# blocking database and broker calls never stall the event loop.
# =============================================================================

from fastapi import APIRouter, status

from app.activity_logging import ActivityLoggingRoute
from app.dependencies import UserServiceDep
from core.models.user import ApiResponse, ResponseStatus, UserCreate, UserResponse

router = APIRouter(route_class=ActivityLoggingRoute)


# =============================================================================
# Endpoints
# =============================================================================

@router.post(
    "",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_user(request: UserCreate, service: UserServiceDep):
    """
    Register a new user.

    Queues a welcome job for the user once they are stored.
    Returns 409 when the e-mail is already registered.
    """
    user = service.create_user(request)

    return ApiResponse[UserResponse](
        status_code=status.HTTP_201_CREATED,
        status=ResponseStatus.SUCCESS,
        result=user,
        message="User created successfully",
    )


@router.get("", response_model=ApiResponse[list[UserResponse]])
def list_users(service: UserServiceDep):
    """List every registered user in id order."""
    users = service.list_users()

    return ApiResponse[list[UserResponse]](
        status_code=status.HTTP_200_OK,
        status=ResponseStatus.SUCCESS,
        result=users,
        message="Users fetched successfully",
    )


@router.get("/adults", response_model=ApiResponse[list[UserResponse]])
def list_adult_users(service: UserServiceDep):
    """
    List adult users.

    Only users strictly older than 18, sorted by name.
    """
    users = service.list_adults()

    return ApiResponse[list[UserResponse]](
        status_code=status.HTTP_200_OK,
        status=ResponseStatus.SUCCESS,
        result=users,
        message="Adult users fetched successfully",
    )
