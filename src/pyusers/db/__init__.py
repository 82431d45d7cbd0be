"""Database layer for PyUsers."""

from pyusers.db.base import Base
from pyusers.db.session import Database, create_engine, get_db

__all__ = [
    "Base",
    "Database",
    "create_engine",
    "get_db",
]
