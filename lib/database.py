# =============================================================================
# lib/database.py - SQLAlchemy Engine and Session Helpers
# =============================================================================
# This module owns the relational database connection:
# - Declarative Base shared by all ORM entities
# - Engine creation from Settings (PostgreSQL in production, SQLite in tests)
# - Session factory used by repositories
# - Schema creation and a ping used by health checks
#
# Usage:
#   from lib.database import create_db_engine, create_session_factory
#   engine = create_db_engine(settings)
#   session_factory = create_session_factory(engine)
#   with session_factory() as session:
#       ...
# =============================================================================

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from app.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for every ORM entity in the service."""


# =============================================================================
# Errors
# =============================================================================

class DatabaseError(Exception):
    """
    Error during database operations.

    Provides actionable error messages:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "DATABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class DatabaseConnectionError(DatabaseError):
    """The database could not be reached."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Database is unreachable: {error}",
            code="DB_CONNECTION_FAILED",
            suggestion="Check DB_HOST/DB_PORT (or DATABASE_URL) and that the database is running",
        )


class DatabaseIntegrityError(DatabaseError):
    """A write violated a database constraint."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Constraint violation: {error}",
            code="DB_INTEGRITY_ERROR",
        )


# =============================================================================
# Engine / Session
# =============================================================================

def create_db_engine(settings: Settings) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    SQLite URLs (used by tests) share one connection across threads so an
    in-memory database survives between sessions.

    Args:
        settings: Application settings

    Returns:
        Engine: Lazily-connecting engine
    """
    url = settings.database_url

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=settings.DB_ECHO,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            url,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            pool_pre_ping=True,
        )

    logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Build the session factory used by repositories.

    expire_on_commit=False keeps entities readable after their session closes.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    """Create any missing tables for the registered ORM entities."""
    # Entities register themselves on Base.metadata when imported
    import core.models.entities  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("Database schema is up to date")


def ping(engine: Engine, timeout_ms: int = 1500) -> None:
    """
    Run a trivial query to prove the database answers.

    Args:
        engine: Engine to check
        timeout_ms: Statement timeout applied on PostgreSQL

    Raises:
        DatabaseConnectionError: If the database does not answer
    """
    try:
        with engine.connect() as connection:
            if engine.dialect.name == "postgresql":
                connection.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))
            connection.execute(text("SELECT 1"))
    except Exception as e:
        raise DatabaseConnectionError(str(e)) from e
