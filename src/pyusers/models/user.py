"""
User, external provider and role models.

Users are provisioned from an external identity provider; further
provider identities can be linked later. Roles are reference data.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pyusers.db.base import Base, BaseModel, generate_uuid, utc_now
from pyusers.models.identity_provider import IdentityProvider, IdentityProviderType


class User(BaseModel):
    """
    User model.

    The ``identity_provider`` column holds the provider the account was
    first provisioned from, persisted as its integer code.
    """

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    identity_provider: Mapped[IdentityProvider] = mapped_column(
        IdentityProviderType(),
        nullable=False,
        index=True,
    )
    external_user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Relationships
    external_providers: Mapped[list["ExternalProvider"]] = relationship(
        "ExternalProvider",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    roles: Mapped[list["Role"]] = relationship(
        "Role",
        secondary="user_roles",
        lazy="selectin",
        order_by="Role.name",
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.identity_provider.name})>"

    @property
    def role_names(self) -> list[str]:
        return [role.name for role in self.roles]


class ExternalProvider(Base):
    """A provider identity linked to a user (e.g. ``auth0|123456``)."""

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider: Mapped[IdentityProvider] = mapped_column(
        IdentityProviderType(),
        nullable=False,
    )
    external_user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="external_providers")

    __table_args__ = (
        UniqueConstraint("provider", "external_user_id", name="uq_external_providers_identity"),
    )

    def __repr__(self) -> str:
        return f"<ExternalProvider {self.provider.name}:{self.external_user_id}>"


class Role(Base):
    """Named role; seeded as reference data."""

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Role {self.name}>"


class UserRole(Base):
    """Association between users and roles."""

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    )

    __table_args__ = (Index("ix_user_roles_role_id", "role_id"),)


# Baseline reference data, inserted when the schema is created
DEFAULT_ROLES: list[dict[str, str]] = [
    {"id": "00000000-0000-0000-0000-000000000001", "name": "admin", "description": "Full access"},
    {"id": "00000000-0000-0000-0000-000000000002", "name": "user", "description": "Standard access"},
    {"id": "00000000-0000-0000-0000-000000000003", "name": "viewer", "description": "Read-only access"},
]
