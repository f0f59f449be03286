"""Typed async database access for zenith.

SQL in, frozen dataclasses or row dicts out. Not an ORM.

Basic usage::

    from zenith.data import Database, Store

    db = Database("sqlite:///app.db")
    store = Store(db)

    user_id = await store.create("users", {"name": "Ada", "email": "ada@example.com"})
    row = await store.find("users", user_id)

SQLite works out of the box. PostgreSQL needs ``asyncpg``::

    pip install zenith[postgres]
"""

from zenith.data.database import Database
from zenith.data.errors import (
    DataError,
    DriverNotInstalledError,
    MigrationError,
    QueryError,
)
from zenith.data.migrate import (
    Migration,
    MigrationLedger,
    MigrationResult,
    MigrationStatus,
    migrate,
)
from zenith.data.store import Record, Store

__all__ = [
    "DataError",
    "Database",
    "DriverNotInstalledError",
    "Migration",
    "MigrationError",
    "MigrationLedger",
    "MigrationResult",
    "MigrationStatus",
    "QueryError",
    "Record",
    "Store",
    "migrate",
]
