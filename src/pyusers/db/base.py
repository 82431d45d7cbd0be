"""
Declarative base for the users schema.

Every model must inherit from ``Base`` so that ``Base.metadata`` (and with
it the harness resets) knows about its table.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


def generate_uuid() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models; table names are snake_case plurals."""

    @declared_attr.directive
    @classmethod
    def __tablename__(cls) -> str:
        # UserRole -> user_roles
        name = cls.__name__
        words = [name[0].lower()]
        for char in name[1:]:
            words.append(f"_{char.lower()}" if char.isupper() else char)
        return "".join(words) + "s"


class BaseModel(Base):
    """Abstract entity with a string UUID key and audit timestamps."""

    __abstract__ = True

    # String(36) keeps the key portable between SQLite and PostgreSQL
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )
