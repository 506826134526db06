# =============================================================================
# core/models/entities.py - ORM Entities
# =============================================================================
# SQLAlchemy mappings for tables owned by this service.
#
# The unique constraint on users.email is the authoritative uniqueness guard;
# the service's read-before-write check is only a fast path.
# =============================================================================

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from lib.database import Base


class UserEntity(Base):
    """A registered user (`users` table)."""

    __tablename__ = "users"

    # BigInteger on PostgreSQL, plain INTEGER on SQLite so autoincrement works there
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    age: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"UserEntity(id={self.id!r}, email={self.email!r})"
