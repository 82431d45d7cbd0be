"""
Integration test harness for the users application.

Each ``HarnessFactory`` owns an isolated app instance whose stores can be
returned to a known baseline between tests.
"""

from pyusers.testing.config import (
    HarnessConfig,
    Override,
    ResetStrategy,
    add_store,
    default_test_settings,
    ignore_tables,
    override_dependency,
    replace_service,
    reset_all_tables,
    use_reset_strategy,
    with_baseline,
    with_postgres_container,
    with_reset_timeout,
    with_settings,
)
from pyusers.testing.factory import HarnessFactory, HarnessState, collect_dependencies
from pyusers.testing.graph import ServiceGraph
from pyusers.testing.pool import (
    EphemeralDatabase,
    PooledDatabase,
    PostgresContainerServer,
    StorePool,
)
from pyusers.testing.stores import BackingStore, CacheStore, DatabaseStore, cache_store

__all__ = [
    "BackingStore",
    "CacheStore",
    "DatabaseStore",
    "EphemeralDatabase",
    "HarnessConfig",
    "HarnessFactory",
    "HarnessState",
    "Override",
    "PooledDatabase",
    "PostgresContainerServer",
    "ResetStrategy",
    "ServiceGraph",
    "StorePool",
    "add_store",
    "cache_store",
    "collect_dependencies",
    "default_test_settings",
    "ignore_tables",
    "override_dependency",
    "replace_service",
    "reset_all_tables",
    "use_reset_strategy",
    "with_baseline",
    "with_postgres_container",
    "with_reset_timeout",
    "with_settings",
]
