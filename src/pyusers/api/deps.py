"""
FastAPI dependency injection functions.

Long-lived services come from the service container on ``app.state``;
per-request database sessions come from ``get_db``.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pyusers.core.config import Settings
from pyusers.core.container import ServiceContainer
from pyusers.db.session import Database, get_db
from pyusers.services.user import UserService


def get_container(request: Request) -> ServiceContainer:
    """Get the service container of the running application."""
    return request.app.state.container


def get_app_settings(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> Settings:
    return container.get(Settings)


def get_database(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> Database:
    return container.get(Database)


def get_user_service(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> UserService:
    return container.get(UserService)


# Type aliases for cleaner endpoint signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
AppDatabase = Annotated[Database, Depends(get_database)]
Users = Annotated[UserService, Depends(get_user_service)]
