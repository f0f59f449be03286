"""Generic CRUD over named tables keyed by an integer ``id`` column.

The store builds one parameterised statement per call. Values are always
bound parameters; table and column names are taken as trusted literals
from the caller and are not validated here.

Usage::

    store = Store(db)

    user_id = await store.create("users", {"name": "Ada", "email": "a@x.io"})
    row = await store.find("users", user_id)
    await store.update("users", user_id, {"name": "Ada L."})
    await store.delete("users", user_id)
"""

from collections.abc import Mapping
from typing import Any

from zenith.data._mapping import map_row, map_rows
from zenith.data.database import Database

type Record = dict[str, Any]


class Store:
    """Thin record access on top of a ``Database``."""

    __slots__ = ("_db",)

    def __init__(self, db: Database) -> None:
        self._db = db

    @property
    def db(self) -> Database:
        return self._db

    async def find(self, table: str, id: int) -> Record | None:
        (ph,) = self._db.placeholders(1)
        return await self._db.fetch_row(f"SELECT * FROM {table} WHERE id = {ph}", id)

    async def find_by(self, table: str, conditions: Mapping[str, Any]) -> Record | None:
        """Return the first row whose columns equal every value in *conditions*.

        Only the first match is returned, even when several rows qualify.
        An empty mapping matches any row.
        """
        columns = list(conditions)
        sql = f"SELECT * FROM {table}"
        if columns:
            phs = self._db.placeholders(len(columns))
            clauses = " AND ".join(f"{col} = {ph}" for col, ph in zip(columns, phs, strict=True))
            sql += f" WHERE {clauses}"
        sql += " LIMIT 1"
        return await self._db.fetch_row(sql, *conditions.values())

    async def all(self, table: str) -> list[Record]:
        return await self._db.fetch_rows(f"SELECT * FROM {table}")

    async def create(self, table: str, fields: Mapping[str, Any]) -> int:
        """Insert one row and return its generated id."""
        if not fields:
            msg = f"create() on {table!r} needs at least one field"
            raise ValueError(msg)
        columns = ", ".join(fields)
        phs = ", ".join(self._db.placeholders(len(fields)))
        sql = f"INSERT INTO {table} ({columns}) VALUES ({phs})"
        return await self._db.insert(sql, *fields.values())

    async def update(self, table: str, id: int, fields: Mapping[str, Any]) -> bool:
        """Update the row with *id*. Returns whether a row was changed."""
        if not fields:
            return False
        phs = self._db.placeholders(len(fields) + 1)
        assignments = ", ".join(f"{col} = {ph}" for col, ph in zip(fields, phs, strict=False))
        sql = f"UPDATE {table} SET {assignments} WHERE id = {phs[-1]}"
        return await self._db.execute(sql, *fields.values(), id) > 0

    async def delete(self, table: str, id: int) -> bool:
        (ph,) = self._db.placeholders(1)
        return await self._db.execute(f"DELETE FROM {table} WHERE id = {ph}", id) > 0

    # -- Typed access --

    async def find_as[T](self, cls: type[T], table: str, id: int) -> T | None:
        row = await self.find(table, id)
        return None if row is None else map_row(cls, row)

    async def find_by_as[T](
        self, cls: type[T], table: str, conditions: Mapping[str, Any]
    ) -> T | None:
        row = await self.find_by(table, conditions)
        return None if row is None else map_row(cls, row)

    async def all_as[T](self, cls: type[T], table: str) -> list[T]:
        return map_rows(cls, await self.all(table))
