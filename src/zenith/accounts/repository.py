"""User persistence on top of ``Store``."""

from datetime import UTC, datetime
from typing import Any

from zenith.accounts.models import User
from zenith.data.store import Store

USERS_TABLE = "users"


def _timestamp() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")


class UserRepository:
    """Reads and writes ``users`` rows as ``User`` instances."""

    __slots__ = ("_store",)

    def __init__(self, store: Store) -> None:
        self._store = store

    async def find(self, user_id: int) -> User | None:
        return await self._store.find_as(User, USERS_TABLE, user_id)

    async def find_by_email(self, email: str) -> User | None:
        return await self._store.find_by_as(User, USERS_TABLE, {"email": email})

    async def create(self, **fields: Any) -> User:
        """Insert a user and return it as stored.

        ``created_at`` and ``updated_at`` default to the current UTC time.
        """
        now = _timestamp()
        fields.setdefault("created_at", now)
        fields.setdefault("updated_at", now)
        user_id = await self._store.create(USERS_TABLE, fields)
        user = await self.find(user_id)
        assert user is not None
        return user

    async def update(self, user_id: int, **fields: Any) -> bool:
        fields.setdefault("updated_at", _timestamp())
        return await self._store.update(USERS_TABLE, user_id, fields)
