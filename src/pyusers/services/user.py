"""User service for business logic."""

from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pyusers.cache.user_cache import UserCache
from pyusers.core.config import Settings
from pyusers.core.exceptions import (
    ConflictError,
    ProviderNotAllowedError,
    RoleNotFoundError,
    UserNotFoundError,
)
from pyusers.core.logging import get_logger
from pyusers.models.identity_provider import IdentityProvider
from pyusers.models.user import ExternalProvider, Role, User
from pyusers.schemas.user import ProviderLink, UserCreate, UserResponse

logger = get_logger(__name__)


class UserService:
    """Service for user provisioning and role management."""

    def __init__(self, cache: UserCache, settings: Settings) -> None:
        self.cache = cache
        self.settings = settings

    def resolve_provider(self, code: Any) -> IdentityProvider:
        """Decode a provider code using the configured unknown-code policy.

        Raises:
            UnknownProviderError: If the code is unknown and coercion is disabled
            ProviderNotAllowedError: If the provider may not be used in this environment

        """
        if self.settings.coerce_unknown_providers:
            provider = IdentityProvider.coerce(code)
        else:
            provider = IdentityProvider.from_code(code)

        if self.settings.is_production and not provider.is_production_allowed:
            raise ProviderNotAllowedError(provider.name, self.settings.environment)
        return provider

    async def provision_user(
        self,
        db: AsyncSession,
        user_data: UserCreate,
    ) -> User:
        """Create a user from an identity provider account.

        Args:
            db: Database session
            user_data: User creation data

        Returns:
            Created user with roles and provider identities loaded

        Raises:
            ConflictError: If the email or the provider identity is taken

        """
        provider = self.resolve_provider(user_data.provider)

        existing = await db.execute(select(User.id).where(User.email == user_data.email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Email already registered", resource="User")

        await self._ensure_identity_free(db, provider, user_data.external_user_id)

        user = User(
            email=user_data.email,
            name=user_data.name,
            identity_provider=provider,
            external_user_id=user_data.external_user_id,
        )
        user.external_providers.append(
            ExternalProvider(provider=provider, external_user_id=user_data.external_user_id)
        )
        user.roles.extend(await self._default_roles(db))
        db.add(user)
        await db.commit()

        logger.info(
            "User provisioned",
            extra={"user_id": user.id, "provider": provider.name},
        )
        return await self._load_user(db, user.id)

    async def get_user(self, db: AsyncSession, user_id: str) -> User:
        """Get a user by ID.

        Raises:
            UserNotFoundError: If user not found

        """
        return await self._load_user(db, user_id)

    async def get_user_view(self, db: AsyncSession, user_id: str) -> UserResponse:
        """Get a user's response payload, served from cache when possible."""
        cached = await self.cache.get(user_id)
        if cached is not None:
            return UserResponse.model_validate(cached)

        user = await self._load_user(db, user_id)
        view = UserResponse.model_validate(user)
        await self.cache.set(user_id, view.model_dump(mode="json"))
        return view

    async def list_users(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 20,
        provider: Optional[IdentityProvider] = None,
    ) -> tuple[list[User], int]:
        """List users, optionally filtered by identity provider.

        Returns:
            Tuple of (users, total count)

        """
        offset = (page - 1) * page_size

        count_query = select(func.count()).select_from(User)
        query = select(User).order_by(User.created_at, User.email)
        if provider is not None:
            count_query = count_query.where(User.identity_provider == provider)
            query = query.where(User.identity_provider == provider)

        total = (await db.execute(count_query)).scalar_one()
        result = await db.execute(query.offset(offset).limit(page_size))
        return list(result.scalars().all()), total

    async def link_provider(
        self,
        db: AsyncSession,
        user_id: str,
        link: ProviderLink,
    ) -> User:
        """Link another provider identity to an existing user.

        Raises:
            UserNotFoundError: If user not found
            ConflictError: If the identity is already linked to any user

        """
        provider = self.resolve_provider(link.provider)
        user = await self._load_user(db, user_id)
        await self._ensure_identity_free(db, provider, link.external_user_id)

        user.external_providers.append(
            ExternalProvider(provider=provider, external_user_id=link.external_user_id)
        )
        await db.commit()
        await self.cache.delete(user_id)
        return await self._load_user(db, user_id)

    async def assign_role(self, db: AsyncSession, user_id: str, role_name: str) -> User:
        """Assign a role to a user. Assigning a held role is a no-op."""
        user = await self._load_user(db, user_id)
        role = await self._get_role(db, role_name)
        if role.name not in user.role_names:
            user.roles.append(role)
            await db.commit()
            await self.cache.delete(user_id)
        return await self._load_user(db, user_id)

    async def remove_role(self, db: AsyncSession, user_id: str, role_name: str) -> User:
        """Remove a role from a user. Removing a role the user lacks is a no-op."""
        user = await self._load_user(db, user_id)
        role = await self._get_role(db, role_name)
        if role.name in user.role_names:
            user.roles = [r for r in user.roles if r.id != role.id]
            await db.commit()
            await self.cache.delete(user_id)
        return await self._load_user(db, user_id)

    async def delete_user(self, db: AsyncSession, user_id: str) -> None:
        """Delete a user and their linked identities."""
        user = await self._load_user(db, user_id)
        await db.delete(user)
        await db.commit()
        await self.cache.delete(user_id)

    async def list_roles(self, db: AsyncSession) -> list[Role]:
        result = await db.execute(select(Role).order_by(Role.name))
        return list(result.scalars().all())

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load_user(self, db: AsyncSession, user_id: str) -> User:
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .options(selectinload(User.roles), selectinload(User.external_providers))
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def _get_role(self, db: AsyncSession, role_name: str) -> Role:
        result = await db.execute(select(Role).where(Role.name == role_name))
        role = result.scalar_one_or_none()
        if role is None:
            raise RoleNotFoundError(role_name)
        return role

    async def _default_roles(self, db: AsyncSession) -> list[Role]:
        if not self.settings.default_roles:
            return []
        result = await db.execute(select(Role).where(Role.name.in_(self.settings.default_roles)))
        roles = list(result.scalars().all())
        missing = set(self.settings.default_roles) - {role.name for role in roles}
        if missing:
            logger.warning(f"Default roles not seeded: {sorted(missing)}")
        return roles

    async def _ensure_identity_free(
        self,
        db: AsyncSession,
        provider: IdentityProvider,
        external_user_id: str,
    ) -> None:
        result = await db.execute(
            select(ExternalProvider.id).where(
                ExternalProvider.provider == provider,
                ExternalProvider.external_user_id == external_user_id,
            )
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictError(
                f"{provider.name} identity '{external_user_id}' is already linked",
                resource="ExternalProvider",
            )
