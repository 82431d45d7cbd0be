"""Read access to a composed harness instance."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from pyusers.cache.user_cache import UserCache
from pyusers.core.config import Settings
from pyusers.core.container import ServiceContainer
from pyusers.db.session import Database

T = TypeVar("T")


class ServiceGraph:
    """
    Handle on the services of one harness instance.

    Tests use it to reach application services directly, bypassing HTTP,
    for setup and assertions. It exposes lookups only; registrations are
    fixed once the instance is composed.
    """

    def __init__(self, app: FastAPI, container: ServiceContainer) -> None:
        self._app = app
        self._container = container

    @property
    def app(self) -> FastAPI:
        return self._app

    @property
    def container(self) -> ServiceContainer:
        return self._container

    @property
    def settings(self) -> Settings:
        return self._container.get(Settings)

    @property
    def database(self) -> Database:
        return self._container.get(Database)

    @property
    def cache(self) -> UserCache:
        return self._container.get(UserCache)

    def get(self, service_type: type[T]) -> T:
        """
        Resolve a registered service.

        Raises:
            LookupError: If the service is not registered
        """
        try:
            return self._container.get(service_type)
        except KeyError:
            raise LookupError(f"No service registered for {service_type!r}") from None

    def dependency_override(self, dependency: Any) -> Any:
        """Return the provider overriding a FastAPI dependency, or None."""
        return self._app.dependency_overrides.get(dependency)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a database session against this instance's store."""
        async with self.database.session() as session:
            yield session

    def __contains__(self, service_type: object) -> bool:
        return service_type in self._container

    def __repr__(self) -> str:
        return f"<ServiceGraph app={self._app.title!r} database={self.database.url!r}>"
