# =============================================================================
# core/services/user_repository.py - User Persistence
# =============================================================================
# Data access for the users table. Each call opens its own short session.
# SQLAlchemy errors are translated into lib.database errors so callers never
# see driver exceptions.
# =============================================================================

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from core.models.entities import UserEntity
from lib.database import DatabaseConnectionError, DatabaseError, DatabaseIntegrityError

logger = logging.getLogger(__name__)

_ORDER_COLUMNS = {
    "id": UserEntity.id,
    "name": UserEntity.name,
    "email": UserEntity.email,
    "age": UserEntity.age,
}


class UserRepository:
    """
    Repository for UserEntity rows.

    Example:
        repository = UserRepository(session_factory)
        user = repository.find_by_email("ann@x.com")
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def find_by_email(self, email: str) -> UserEntity | None:
        """
        Look up a user by exact e-mail match.

        Returns:
            The user, or None when no user has this e-mail
        """
        try:
            with self._session_factory() as session:
                stmt = select(UserEntity).where(UserEntity.email == email)
                return session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise _translate(e) from e

    def save(self, user: UserEntity) -> UserEntity:
        """
        Insert or update a user and return it with its assigned id.

        Raises:
            DatabaseIntegrityError: A constraint (e.g. unique e-mail) was violated
            DatabaseConnectionError: The database is unreachable
        """
        try:
            with self._session_factory() as session:
                session.add(user)
                session.commit()
                session.refresh(user)
                logger.info(f"Saved user: {user.id}")
                return user
        except SQLAlchemyError as e:
            raise _translate(e) from e

    def find_all(self, min_age_exclusive: int | None = None, order_by: str = "id") -> list[UserEntity]:
        """
        List users.

        Args:
            min_age_exclusive: Only return users strictly older than this
            order_by: Column to sort ascending by (id, name, email or age)

        Returns:
            Matching users
        """
        column = _ORDER_COLUMNS.get(order_by)
        if column is None:
            raise ValueError(f"Unsupported sort column: {order_by}")

        stmt = select(UserEntity)
        if min_age_exclusive is not None:
            stmt = stmt.where(UserEntity.age > min_age_exclusive)
        stmt = stmt.order_by(column.asc(), UserEntity.id.asc())

        try:
            with self._session_factory() as session:
                return list(session.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            raise _translate(e) from e


def _translate(error: SQLAlchemyError) -> DatabaseError:
    """Map a SQLAlchemy error onto the lib.database error family."""
    if isinstance(error, IntegrityError):
        return DatabaseIntegrityError(str(error.orig))
    if isinstance(error, OperationalError):
        return DatabaseConnectionError(str(error.orig))
    return DatabaseError(str(error))
