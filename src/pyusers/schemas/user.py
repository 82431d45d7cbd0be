"""User schemas for request/response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, StrictInt, field_serializer

from pyusers.models.identity_provider import IdentityProvider


class UserCreate(BaseModel):
    """Schema for provisioning a user from an identity provider."""

    email: EmailStr = Field(..., description="User email")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    provider: StrictInt = Field(..., description="Identity provider code")
    external_user_id: str = Field(
        ..., min_length=1, max_length=255, description="User ID at the provider"
    )


class ProviderLink(BaseModel):
    """Schema for linking another provider identity to a user."""

    provider: StrictInt = Field(..., description="Identity provider code")
    external_user_id: str = Field(..., min_length=1, max_length=255)


class ExternalProviderResponse(BaseModel):
    """Schema for a linked provider identity."""

    provider: IdentityProvider
    external_user_id: str
    added_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("provider")
    def serialize_provider(self, provider: IdentityProvider) -> int:
        return provider.to_code()


class UserResponse(BaseModel):
    """Schema for user response."""

    id: str
    email: str
    name: str
    identity_provider: IdentityProvider
    external_user_id: str
    is_active: bool
    roles: list[str] = Field(default_factory=list, validation_alias="role_names")
    external_providers: list[ExternalProviderResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True, "populate_by_name": True}

    @field_serializer("identity_provider")
    def serialize_identity_provider(self, provider: IdentityProvider) -> int:
        return provider.to_code()


class UserListResponse(BaseModel):
    """Schema for user list response."""

    items: list[UserResponse]
    total: int
    page: int
    page_size: int


class RoleResponse(BaseModel):
    """Schema for role response."""

    id: str
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}
