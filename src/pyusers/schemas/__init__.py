"""Pydantic schemas for PyUsers."""

from pyusers.schemas.user import (
    ExternalProviderResponse,
    ProviderLink,
    RoleResponse,
    UserCreate,
    UserListResponse,
    UserResponse,
)

__all__ = [
    "ExternalProviderResponse",
    "ProviderLink",
    "RoleResponse",
    "UserCreate",
    "UserListResponse",
    "UserResponse",
]
