"""Tests for zenith.data.database: connections, queries and transactions."""

from dataclasses import dataclass
from pathlib import Path

import anyio
import pytest

import zenith.data.database as database_module

from zenith.data import Database, DataError, QueryError
from zenith.data._mapping import map_row, map_rows


@dataclass(frozen=True, slots=True)
class Item:
    id: int
    name: str


@pytest.fixture
async def db():
    database = Database("sqlite:///:memory:")
    await database.connect()
    await database.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    yield database
    await database.disconnect()


class TestDriverDetection:
    def test_sqlite(self) -> None:
        assert Database("sqlite:///app.db").driver == "sqlite"

    def test_postgresql(self) -> None:
        assert Database("postgresql://u:p@localhost/db").driver == "postgresql"

    def test_unknown_scheme(self) -> None:
        with pytest.raises(DataError, match="Unsupported"):
            Database("mysql://localhost/db")

    def test_placeholders(self) -> None:
        assert Database("sqlite:///:memory:").placeholders(3) == ["?", "?", "?"]
        assert Database("postgresql://localhost/db").placeholders(2, start=3) == ["$3", "$4"]


class TestQueries:
    async def test_insert_returns_id(self, db: Database) -> None:
        item_id = await db.insert("INSERT INTO items (name) VALUES (?)", "pen")
        assert item_id == 1

    async def test_execute_returns_rowcount(self, db: Database) -> None:
        await db.insert("INSERT INTO items (name) VALUES (?)", "a")
        await db.insert("INSERT INTO items (name) VALUES (?)", "b")
        assert await db.execute("UPDATE items SET name = ?", "z") == 2

    async def test_fetch_typed(self, db: Database) -> None:
        await db.insert("INSERT INTO items (name) VALUES (?)", "pen")
        items = await db.fetch(Item, "SELECT * FROM items")
        assert items == [Item(id=1, name="pen")]

    async def test_fetch_one_missing(self, db: Database) -> None:
        assert await db.fetch_one(Item, "SELECT * FROM items WHERE id = ?", 5) is None

    async def test_fetch_row_dict(self, db: Database) -> None:
        await db.insert("INSERT INTO items (name) VALUES (?)", "pen")
        assert await db.fetch_row("SELECT name FROM items") == {"name": "pen"}

    async def test_fetch_val(self, db: Database) -> None:
        assert await db.fetch_val("SELECT COUNT(*) FROM items") == 0

    async def test_bad_sql_is_query_error(self, db: Database) -> None:
        with pytest.raises(QueryError):
            await db.fetch_rows("SELECT * FROM nowhere")

    async def test_execute_script(self, db: Database) -> None:
        await db.execute_script(
            "INSERT INTO items (name) VALUES ('a');\nINSERT INTO items (name) VALUES ('b');"
        )
        assert await db.fetch_val("SELECT COUNT(*) FROM items") == 2

    async def test_connects_lazily(self, tmp_path: Path) -> None:
        database = Database(f"sqlite:///{tmp_path / 'lazy.db'}")
        try:
            assert await database.fetch_val("SELECT 1") == 1
        finally:
            await database.disconnect()

    async def test_echo_logs_queries(self, caplog: pytest.LogCaptureFixture) -> None:
        async with Database("sqlite:///:memory:", echo=True) as database:
            with caplog.at_level("DEBUG", logger="zenith.data"):
                await database.fetch_val("SELECT 42")
        assert "SELECT 42" in caplog.text

    async def test_concurrent_first_queries_share_one_connection(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        created = []
        real_create_pool = database_module._create_pool

        async def counting_create_pool(driver, config):
            await anyio.sleep(0.01)
            pool = await real_create_pool(driver, config)
            created.append(pool)
            return pool

        monkeypatch.setattr(database_module, "_create_pool", counting_create_pool)
        database = Database("sqlite:///:memory:")
        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(database.execute, "CREATE TABLE a (id INTEGER)")
                tg.start_soon(database.execute, "CREATE TABLE b (id INTEGER)")
            assert len(created) == 1
            tables = await database.fetch_rows(
                "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
            )
            assert [row["name"] for row in tables] == ["a", "b"]
        finally:
            await database.disconnect()

    async def test_concurrent_disconnects_close_once(self) -> None:
        database = Database("sqlite:///:memory:")
        await database.connect()
        async with anyio.create_task_group() as tg:
            tg.start_soon(database.disconnect)
            tg.start_soon(database.disconnect)
        assert await database.fetch_val("SELECT 1") == 1
        await database.disconnect()


class TestTransactions:
    async def test_commit(self, db: Database) -> None:
        async with db.transaction():
            await db.insert("INSERT INTO items (name) VALUES (?)", "a")
            await db.insert("INSERT INTO items (name) VALUES (?)", "b")
        assert await db.fetch_val("SELECT COUNT(*) FROM items") == 2

    async def test_rollback_on_error(self, db: Database) -> None:
        with pytest.raises(RuntimeError):
            async with db.transaction():
                await db.insert("INSERT INTO items (name) VALUES (?)", "a")
                raise RuntimeError("abort")
        assert await db.fetch_val("SELECT COUNT(*) FROM items") == 0

    async def test_nested_transaction_joins_outer(self, db: Database) -> None:
        with pytest.raises(RuntimeError):
            async with db.transaction():
                async with db.transaction():
                    await db.insert("INSERT INTO items (name) VALUES (?)", "inner")
                raise RuntimeError("outer fails")
        assert await db.fetch_val("SELECT COUNT(*) FROM items") == 0


class TestMapping:
    def test_extra_columns_ignored(self) -> None:
        assert map_row(Item, {"id": 1, "name": "a", "extra": True}) == Item(id=1, name="a")

    def test_coerces_scalars(self) -> None:
        assert map_row(Item, {"id": "3", "name": "a"}) == Item(id=3, name="a")

    def test_rejects_non_dataclass(self) -> None:
        with pytest.raises(TypeError, match="not a dataclass"):
            map_rows(dict, [{"id": 1}])
