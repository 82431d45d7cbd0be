"""
Pytest configuration and fixtures for PyUsers tests.

Every test gets its own harness instance: a fresh app, service container
and SQLite database in a private temp directory, disposed afterwards.
"""

from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from pyusers.core.config import settings
from pyusers.models.identity_provider import IdentityProvider
from pyusers.testing import HarnessFactory, ServiceGraph, StorePool


@pytest.fixture(scope="session", autouse=True)
def store_pool() -> Generator[StorePool, None, None]:
    """Tear down shared databases at the end of the run."""
    pool = StorePool.shared()
    yield pool
    pool.teardown()


@pytest_asyncio.fixture
async def harness() -> AsyncGenerator[HarnessFactory, None]:
    """Composed harness instance, disposed after the test."""
    factory = HarnessFactory()
    factory.compose()
    yield factory
    await factory.dispose()


@pytest_asyncio.fixture
async def client(harness: HarnessFactory) -> AsyncClient:
    """HTTP client bound to the harness app; closed by the harness."""
    return harness.create_client()


@pytest.fixture
def services(harness: HarnessFactory) -> ServiceGraph:
    return harness.services()


@pytest_asyncio.fixture
async def db_session(services: ServiceGraph) -> AsyncGenerator[AsyncSession, None]:
    """Database session against the harness database."""
    async with services.session() as session:
        yield session


@pytest.fixture
def user_payload() -> Callable[..., dict[str, Any]]:
    """Build a provisioning payload; keyword arguments override fields."""

    def build(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "email": "ada@example.com",
            "name": "Ada Lovelace",
            "provider": IdentityProvider.AUTH0.to_code(),
            "external_user_id": "auth0|ada",
        }
        payload.update(overrides)
        return payload

    return build


@pytest_asyncio.fixture
async def provisioned_user(
    client: AsyncClient,
    user_payload: Callable[..., dict[str, Any]],
) -> dict[str, Any]:
    """A user created through the API."""
    response = await client.post(f"{settings.api_v1_prefix}/users", json=user_payload())
    assert response.status_code == 201
    return response.json()
