"""``zenith routes``: list registered routes."""

import argparse
import sys

from zenith.cli._resolve import resolve_app


def run_routes(args: argparse.Namespace) -> None:
    """Print a METHOD / PATH / HANDLER / GUARDS table for ``args.app``."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = app.routes
    if not routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str, str]] = []
    for route in routes:
        handler_name = getattr(route.handler, "__name__", str(route.handler))
        if route.name:
            handler_name = f"{handler_name} ({route.name})"
        guards = ", ".join(getattr(g, "__name__", repr(g)) for g in route.guards)
        rows.append((route.method, route.path, handler_name, guards))

    max_method = max(6, *(len(r[0]) for r in rows))
    max_path = max(4, *(len(r[1]) for r in rows))
    max_handler = max(7, *(len(r[2]) for r in rows))

    fmt = f"{{:<{max_method}}}  {{:<{max_path}}}  {{:<{max_handler}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "HANDLER", "GUARDS").rstrip())
    print("-" * min(max_method + max_path + max_handler + 12, 80))
    for row in rows:
        print(fmt.format(*row).rstrip())
