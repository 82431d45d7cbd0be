"""
Schema creation and baseline data.

Functions here take a synchronous ``Connection`` so they serve both sync
engines and async ones through ``AsyncConnection.run_sync``.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy import MetaData, func, insert, select
from sqlalchemy.engine import Connection

from pyusers.db.base import Base
from pyusers.models.user import DEFAULT_ROLES

Baseline = Mapping[str, Sequence[Mapping[str, Any]]]

# Rows every fresh database starts with
DEFAULT_BASELINE: Baseline = {"roles": DEFAULT_ROLES}


def create_schema(connection: Connection, metadata: MetaData | None = None) -> None:
    """Create every table that does not exist yet."""
    (metadata or Base.metadata).create_all(connection, checkfirst=True)


def drop_schema(connection: Connection, metadata: MetaData | None = None) -> None:
    """Drop every table known to the metadata."""
    (metadata or Base.metadata).drop_all(connection, checkfirst=True)


def table_is_empty(connection: Connection, metadata: MetaData, table_name: str) -> bool:
    table = metadata.tables[table_name]
    return connection.execute(select(func.count()).select_from(table)).scalar_one() == 0


def seed_baseline(
    connection: Connection,
    baseline: Baseline,
    metadata: MetaData | None = None,
    only_if_empty: Iterable[str] = (),
) -> int:
    """
    Insert baseline rows in dependency order.

    Tables listed in ``only_if_empty`` are seeded only when they hold no rows.

    Returns:
        Number of rows inserted
    """
    metadata = metadata or Base.metadata
    guarded = set(only_if_empty)
    inserted = 0
    for table in metadata.sorted_tables:
        rows = baseline.get(table.name)
        if not rows:
            continue
        if table.name in guarded and not table_is_empty(connection, metadata, table.name):
            continue
        connection.execute(insert(table), [dict(row) for row in rows])
        inserted += len(rows)
    return inserted


def init_schema(connection: Connection) -> None:
    """Create the schema and seed reference data for a standalone run."""
    create_schema(connection)
    seed_baseline(connection, DEFAULT_BASELINE, only_if_empty=DEFAULT_BASELINE.keys())
