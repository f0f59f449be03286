"""``zenith migrate``: apply pending migrations or show their status."""

import argparse
import sys
from pathlib import Path

import anyio

from zenith.app import App
from zenith.cli._resolve import resolve_app
from zenith.data.errors import DataError
from zenith.data.migrate import MigrationLedger
from zenith.logs import configure_logging


async def _migrate(app: App, directory: Path, status: bool) -> None:
    ledger = MigrationLedger(app.db, directory)
    try:
        await app.db.connect()
        if status:
            for entry in await ledger.status():
                mark = "x" if entry.applied else " "
                suffix = f"  {entry.executed_at}" if entry.executed_at else ""
                print(f"[{mark}] {entry.name}{suffix}")
        else:
            result = await ledger.run()
            print(result.summary)
    finally:
        await app.db.disconnect()


def run_migrate(args: argparse.Namespace) -> None:
    """Run the ledger for ``args.app``. Exits 1 on any migration failure."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    directory = args.dir or app.migrations_dir
    if directory is None:
        print(
            "Error: no migrations directory. Pass --dir or set DB_MIGRATIONS.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    configure_logging(app.config.log_level)
    try:
        anyio.run(_migrate, app, Path(directory), args.status)
    except DataError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
