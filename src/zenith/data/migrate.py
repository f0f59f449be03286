"""Sequential, ledger-based migration runner.

Migrations live in one directory, named so that lexicographic order is
execution order::

    migrations/
        001_create_users_table.py
        002_add_role_index.sql
        010_create_posts.py

A ``.py`` migration defines ``async def up(db)`` and, optionally,
``async def down(db)``. A ``.sql`` file is a forward-only script. Files
starting with ``_`` are ignored.

Executed migrations are recorded in the ``migrations`` table (``id``,
``migration``, ``executed_at``). A record is written exactly once, right
after its migration succeeds, in the same transaction. Nothing in this
module updates or deletes a record, and ``down`` is never run
automatically.

Usage::

    from zenith.data import Database, migrate

    db = Database("sqlite:///app.db")
    await db.connect()
    result = await migrate(db, "migrations/")
    print(result.summary)

Or integrated with the app::

    app = App(AppConfig(database=DatabaseSettings(migrations="migrations/")))

The ledger assumes a single runner. Concurrent runs against the same
database must be serialised by the deployment.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from zenith.data.database import Database
from zenith.data.errors import MigrationError

logger = logging.getLogger("zenith.migrate")

LEDGER_TABLE = "migrations"

_LEDGER_DDL = {
    "sqlite": f"""
CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    migration   TEXT NOT NULL,
    executed_at TEXT NOT NULL
)
""",
    "postgresql": f"""
CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
    id          SERIAL PRIMARY KEY,
    migration   VARCHAR(255) NOT NULL,
    executed_at TEXT NOT NULL
)
""",
}

type MigrationStep = Callable[[Database], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class Migration:
    """One discovered migration.

    ``name`` is the file stem (``001_create_users_table``) and is the
    identity recorded in the ledger.
    """

    name: str
    up: MigrationStep
    down: MigrationStep
    source: Path


@dataclass(frozen=True, slots=True)
class MigrationResult:
    """Result of one ``run()``."""

    applied: list[str]
    already_applied: int
    total_available: int

    @property
    def summary(self) -> str:
        if not self.applied:
            return f"Already up to date ({self.already_applied} migrations applied)"
        applied_names = ", ".join(self.applied)
        return f"Applied {len(self.applied)} migration(s): {applied_names}"


@dataclass(frozen=True, slots=True)
class MigrationStatus:
    name: str
    executed_at: str | None

    @property
    def applied(self) -> bool:
        return self.executed_at is not None


@dataclass(frozen=True, slots=True)
class _LedgerRow:
    migration: str
    executed_at: str


# =============================================================================
# Loading migration sources
# =============================================================================


def _load_python(path: Path) -> Migration:
    spec = importlib.util.spec_from_file_location(f"_zenith_migration_{path.stem}", path)
    if spec is None or spec.loader is None:
        msg = f"Cannot load migration module: {path.name}"
        raise MigrationError(msg)
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        msg = f"Migration {path.stem} failed to import: {exc}"
        raise MigrationError(msg) from exc

    up = getattr(module, "up", None)
    if up is None or not inspect.iscoroutinefunction(up):
        msg = f"Migration {path.name} must define 'async def up(db)'"
        raise MigrationError(msg)

    down = getattr(module, "down", None)
    if down is None:
        down = _irreversible(path.stem)
    return Migration(name=path.stem, up=up, down=down, source=path)


def _load_sql(path: Path) -> Migration:
    sql = path.read_text(encoding="utf-8").strip()
    if not sql:
        msg = f"Empty migration file: {path.name}"
        raise MigrationError(msg)

    async def up(db: Database) -> None:
        await db.execute_script(sql)

    return Migration(name=path.stem, up=up, down=_irreversible(path.stem), source=path)


def _irreversible(name: str) -> MigrationStep:
    async def down(db: Database) -> None:
        msg = f"Migration {name} has no down step"
        raise MigrationError(msg)

    return down


_LOADERS: dict[str, Callable[[Path], Migration]] = {
    ".py": _load_python,
    ".sql": _load_sql,
}


def discover_migrations(directory: str | Path) -> list[Migration]:
    """Load every migration in *directory*, sorted by name ascending.

    Raises ``MigrationError`` if the directory does not exist or two files
    share a stem (``001_users.py`` next to ``001_users.sql``).
    """
    path = Path(directory)
    if not path.is_dir():
        msg = f"Migration directory does not exist: {path}"
        raise MigrationError(msg)

    sources = [
        p
        for p in path.iterdir()
        if p.is_file() and p.suffix in _LOADERS and not p.name.startswith("_")
    ]
    stems = [p.stem for p in sources]
    duplicates = sorted({s for s in stems if stems.count(s) > 1})
    if duplicates:
        msg = f"Duplicate migration names: {', '.join(duplicates)}"
        raise MigrationError(msg)

    return [_LOADERS[p.suffix](p) for p in sorted(sources, key=lambda p: p.stem)]


# =============================================================================
# Ledger
# =============================================================================


class MigrationLedger:
    """Applies pending migrations from one directory, exactly once each."""

    __slots__ = ("_db", "_directory")

    def __init__(self, db: Database, directory: str | Path) -> None:
        self._db = db
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    async def ensure_ledger_storage(self) -> None:
        await self._db.execute(_LEDGER_DDL[self._db.driver])

    def discover(self) -> list[Migration]:
        return discover_migrations(self._directory)

    async def _records(self) -> list[_LedgerRow]:
        await self.ensure_ledger_storage()
        return await self._db.fetch(
            _LedgerRow,
            f"SELECT migration, executed_at FROM {LEDGER_TABLE} ORDER BY id",
        )

    async def applied_names(self) -> set[str]:
        return {row.migration for row in await self._records()}

    async def pending_migrations(self) -> list[Migration]:
        applied = await self.applied_names()
        return [m for m in self.discover() if m.name not in applied]

    async def apply(self, migration: Migration) -> None:
        """Run *migration* forward and record it, atomically.

        Raises ``MigrationError`` wrapping whatever the migration raised;
        the transaction is rolled back and no record is written.
        """
        executed_at = datetime.now(UTC).isoformat()
        phs = ", ".join(self._db.placeholders(2))
        try:
            async with self._db.transaction():
                await migration.up(self._db)
                await self._db.execute(
                    f"INSERT INTO {LEDGER_TABLE} (migration, executed_at) VALUES ({phs})",
                    migration.name,
                    executed_at,
                )
        except MigrationError:
            raise
        except Exception as exc:
            msg = f"Migration {migration.name} failed: {exc}"
            raise MigrationError(msg) from exc

    async def run(self) -> MigrationResult:
        """Apply every pending migration in name order.

        Stops at the first failure. Migrations applied before it stay
        recorded, so the next run resumes from the failed one.
        """
        migrations = self.discover()
        applied_before = await self.applied_names()
        pending = [m for m in migrations if m.name not in applied_before]

        applied: list[str] = []
        for migration in pending:
            await self.apply(migration)
            applied.append(migration.name)
            logger.info("Executed migration: %s", migration.name)

        return MigrationResult(
            applied=applied,
            already_applied=len(applied_before),
            total_available=len(migrations),
        )

    async def status(self) -> list[MigrationStatus]:
        """Every discovered migration with its execution time, if any."""
        executed = {row.migration: row.executed_at for row in await self._records()}
        return [MigrationStatus(m.name, executed.get(m.name)) for m in self.discover()]


async def migrate(db: Database, directory: str | Path) -> MigrationResult:
    """Apply pending migrations from *directory*.

    Raises:
        MigrationError: If the directory is invalid or a migration fails.
    """
    return await MigrationLedger(db, directory).run()
