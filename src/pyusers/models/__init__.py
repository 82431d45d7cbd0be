"""SQLAlchemy models for PyUsers."""

from pyusers.models.identity_provider import IdentityProvider, IdentityProviderType
from pyusers.models.user import DEFAULT_ROLES, ExternalProvider, Role, User, UserRole

__all__ = [
    "DEFAULT_ROLES",
    "ExternalProvider",
    "IdentityProvider",
    "IdentityProviderType",
    "Role",
    "User",
    "UserRole",
]
