# =============================================================================
# core/services/user_service.py - User Business Logic
# =============================================================================
# Handles user registration and listing.
# Registration is the one place where both side channels fire for a single
# request: the activity log (via the route) and the welcome job (here).
#
# Persistence and enqueue are not atomic: if the enqueue fails after the user
# was saved, the user stays and the failure is only logged.
# =============================================================================

import logging

from app.exceptions import (
    EmailAlreadyExistsError,
    ServiceUnavailableError,
    UserOperationError,
)
from core.models.entities import UserEntity
from core.models.job import WELCOME_USER_JOB, JobOptions
from core.models.user import UserCreate, UserResponse
from core.services.user_repository import UserRepository
from lib.database import DatabaseConnectionError, DatabaseError, DatabaseIntegrityError
from lib.job_queue import JobQueue, JobQueueError

logger = logging.getLogger(__name__)

ADULT_AGE = 18


class UserService:
    """
    Service for user registration and listing.

    Provides a clean interface between API routes and the database/queue.
    """

    def __init__(
        self,
        repository: UserRepository,
        job_queue: JobQueue,
        job_options: JobOptions | None = None,
    ):
        self._repository = repository
        self._job_queue = job_queue
        self._job_options = job_options or JobOptions()

    def create_user(self, data: UserCreate) -> UserResponse:
        """
        Register a new user and queue their welcome job.

        Args:
            data: Validated registration input

        Returns:
            The created user (even when queueing the welcome job failed)

        Raises:
            EmailAlreadyExistsError: The e-mail is already registered
            ServiceUnavailableError: The database is unreachable
            UserOperationError: Any other persistence failure
        """
        try:
            if self._repository.find_by_email(data.email) is not None:
                raise EmailAlreadyExistsError(data.email)

            entity = self._repository.save(
                UserEntity(name=data.name, email=data.email, age=data.age)
            )
        except DatabaseIntegrityError:
            # A concurrent registration won the race; the unique constraint caught it
            raise EmailAlreadyExistsError(data.email)
        except DatabaseConnectionError as e:
            logger.error(f"Error during user creation: {e}")
            raise ServiceUnavailableError("database")
        except DatabaseError as e:
            logger.error(f"Error during user creation: {e}")
            raise UserOperationError("user creation")

        user = UserResponse.model_validate(entity)
        logger.info(f"Created user: {user.id}")

        self._queue_welcome(user)
        return user

    def list_adults(self) -> list[UserResponse]:
        """
        List users strictly older than 18, sorted by name.

        Returns:
            Adult users in ascending name order
        """
        entities = self._find_all("fetching adult users", min_age_exclusive=ADULT_AGE, order_by="name")
        return [UserResponse.model_validate(entity) for entity in entities]

    def list_users(self) -> list[UserResponse]:
        """List every user in id order."""
        entities = self._find_all("fetching users", order_by="id")
        return [UserResponse.model_validate(entity) for entity in entities]

    def _find_all(self, operation: str, **filters) -> list[UserEntity]:
        try:
            return self._repository.find_all(**filters)
        except DatabaseConnectionError as e:
            logger.error(f"Error {operation}: {e}")
            raise ServiceUnavailableError("database")
        except DatabaseError as e:
            logger.error(f"Error {operation}: {e}")
            raise UserOperationError(operation)

    def _queue_welcome(self, user: UserResponse) -> str | None:
        """Enqueue the welcome job; failures are logged, not raised."""
        payload = {"metadata": {"user": user.model_dump(mode="json")}}
        try:
            job_id = self._job_queue.enqueue(WELCOME_USER_JOB, payload, self._job_options)
        except JobQueueError as e:
            logger.error(f"Welcome job for user {user.id} was not queued: {e}")
            return None

        logger.info(f"Queued welcome job {job_id} for user {user.id}")
        return job_id
