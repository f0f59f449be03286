"""Async facade over stdlib ``sqlite3``.

Every blocking call is pushed to a worker thread with
``anyio.to_thread.run_sync``. The connection is opened with
``check_same_thread=False`` because consecutive calls may land on
different pool threads; ``Database`` serialises access with a lock.
"""

import sqlite3
from collections.abc import Callable, Sequence
from typing import Any

import anyio.to_thread


async def _run(func: Callable[[], Any]) -> Any:
    return await anyio.to_thread.run_sync(func)


class AsyncCursor:
    __slots__ = ("_cursor",)

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor

    @property
    def description(self) -> Any:
        return self._cursor.description

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    @property
    def lastrowid(self) -> int | None:
        return self._cursor.lastrowid

    async def fetchall(self) -> list[Any]:
        return await _run(self._cursor.fetchall)

    async def fetchone(self) -> Any:
        return await _run(self._cursor.fetchone)


class AsyncConnection:
    """Async wrapper around ``sqlite3.Connection``."""

    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @property
    def autocommit(self) -> bool:
        return bool(self._conn.autocommit)

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        self._conn.autocommit = value

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> AsyncCursor:
        cursor = await _run(lambda: self._conn.execute(sql, params))
        return AsyncCursor(cursor)

    async def executescript(self, sql: str) -> None:
        """Run several statements at once.

        With explicit ``autocommit`` control the script runs inside the
        current transaction, if any; it is not committed implicitly.
        """
        await _run(lambda: self._conn.executescript(sql))

    async def commit(self) -> None:
        await _run(self._conn.commit)

    async def rollback(self) -> None:
        await _run(self._conn.rollback)

    async def close(self) -> None:
        await _run(self._conn.close)


async def connect(path: str) -> AsyncConnection:
    """Open a connection in autocommit mode.

    ``Database.transaction()`` switches autocommit off for the duration
    of a transaction block.
    """
    conn = await _run(lambda: sqlite3.connect(path, autocommit=True, check_same_thread=False))
    return AsyncConnection(conn)
