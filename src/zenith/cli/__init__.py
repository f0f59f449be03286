"""Zenith CLI: migrations and route listing.

Entry point registered as ``zenith`` in ``pyproject.toml``::

    [project.scripts]
    zenith = "zenith.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``zenith`` command."""
    parser = argparse.ArgumentParser(
        prog="zenith",
        description="Zenith: a minimal async MVC web scaffold.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- zenith migrate -----------------------------------------------------
    migrate_parser = subparsers.add_parser("migrate", help="Apply pending migrations")
    migrate_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    migrate_parser.add_argument(
        "--dir",
        default=None,
        help="Migrations directory (defaults to the app's configured one)",
    )
    migrate_parser.add_argument(
        "--status",
        action="store_true",
        help="Show applied and pending migrations without running them",
    )

    # -- zenith routes ------------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "migrate":
        from zenith.cli._migrate import run_migrate

        run_migrate(args)
    elif args.command == "routes":
        from zenith.cli._routes import run_routes

        run_routes(args)
