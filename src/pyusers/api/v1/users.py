"""
User management endpoints.

Handles user provisioning, provider linking and role assignment.
Identity providers travel as integer codes.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from pyusers.api.deps import DbSession, Users
from pyusers.models.identity_provider import IdentityProvider
from pyusers.schemas.user import (
    ProviderLink,
    RoleResponse,
    UserCreate,
    UserListResponse,
    UserResponse,
)

router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def provision_user(
    request: UserCreate,
    db: DbSession,
    users: Users,
) -> UserResponse:
    """
    Provision a user from an identity provider account.
    """
    user = await users.provision_user(db, request)
    return UserResponse.model_validate(user)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    db: DbSession,
    users: Users,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    provider: Optional[int] = Query(None, description="Filter by identity provider code"),
) -> UserListResponse:
    """
    List users, optionally filtered by identity provider.
    """
    provider_filter = IdentityProvider.from_code(provider) if provider is not None else None
    items, total = await users.list_users(db, page=page, page_size=page_size, provider=provider_filter)
    return UserListResponse(
        items=[UserResponse.model_validate(user) for user in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    db: DbSession,
    users: Users,
) -> UserResponse:
    """
    Get a user with roles and linked provider identities.
    """
    return await users.get_user_view(db, user_id)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    db: DbSession,
    users: Users,
) -> None:
    """
    Delete a user.
    """
    await users.delete_user(db, user_id)


@router.post("/users/{user_id}/providers", response_model=UserResponse)
async def link_provider(
    user_id: str,
    request: ProviderLink,
    db: DbSession,
    users: Users,
) -> UserResponse:
    """
    Link another provider identity to a user.
    """
    user = await users.link_provider(db, user_id, request)
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/roles/{role_name}", response_model=UserResponse)
async def assign_role(
    user_id: str,
    role_name: str,
    db: DbSession,
    users: Users,
) -> UserResponse:
    """
    Assign a role to a user. Idempotent.
    """
    user = await users.assign_role(db, user_id, role_name)
    return UserResponse.model_validate(user)


@router.delete("/users/{user_id}/roles/{role_name}", response_model=UserResponse)
async def remove_role(
    user_id: str,
    role_name: str,
    db: DbSession,
    users: Users,
) -> UserResponse:
    """
    Remove a role from a user. Idempotent.
    """
    user = await users.remove_role(db, user_id, role_name)
    return UserResponse.model_validate(user)


@router.get("/roles", response_model=list[RoleResponse])
async def list_roles(
    db: DbSession,
    users: Users,
) -> list[RoleResponse]:
    """
    List the available roles.
    """
    return [RoleResponse.model_validate(role) for role in await users.list_roles(db)]
