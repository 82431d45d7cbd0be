"""
Service container for the application composition root.

FastAPI dependencies resolve long-lived services (settings, database,
cache, services) from the container stored on ``app.state``. Keeping the
registrations in one place lets a test harness swap individual services
without touching the route layer.
"""

from collections.abc import Callable, Iterator
from typing import Any, TypeVar

T = TypeVar("T")

Factory = Callable[["ServiceContainer"], Any]


class ServiceContainer:
    """Type-keyed registry of singletons and lazily built services."""

    def __init__(self) -> None:
        self._factories: dict[type, Factory] = {}
        self._instances: dict[type, Any] = {}

    def register_instance(self, service_type: type[T], instance: T) -> None:
        """Register an already built service."""
        self._factories.pop(service_type, None)
        self._instances[service_type] = instance

    def register_factory(self, service_type: type[T], factory: Callable[["ServiceContainer"], T]) -> None:
        """Register a factory; it runs once, on first ``get``."""
        self._instances.pop(service_type, None)
        self._factories[service_type] = factory

    def replace(self, service_type: type[T], instance: T) -> None:
        """
        Replace an existing registration.

        Raises:
            KeyError: If nothing is registered for ``service_type``
        """
        if service_type not in self:
            raise KeyError(service_type)
        self.register_instance(service_type, instance)

    def get(self, service_type: type[T]) -> T:
        """
        Resolve a service.

        Raises:
            KeyError: If nothing is registered for ``service_type``
        """
        if service_type in self._instances:
            return self._instances[service_type]
        factory = self._factories.pop(service_type, None)
        if factory is None:
            raise KeyError(service_type)
        instance = factory(self)
        self._instances[service_type] = instance
        return instance

    def built(self) -> Iterator[tuple[type, Any]]:
        """Iterate over services that have been instantiated so far."""
        return iter(list(self._instances.items()))

    def __contains__(self, service_type: object) -> bool:
        return service_type in self._instances or service_type in self._factories

    def __iter__(self) -> Iterator[type]:
        return iter({*self._instances, *self._factories})
