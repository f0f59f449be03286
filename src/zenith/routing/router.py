"""Exact-match route table.

Lookup is a single dict access on ``(METHOD, path)``: no path
parameters, no wildcards, no trailing-slash normalisation. The query
string is not part of the path and must be stripped before lookup.
"""

import logging
from collections.abc import Iterable

from zenith._internal.types import Guard, Handler
from zenith.errors import ConfigurationError, NotFound
from zenith.routing.route import HTTP_METHODS, Route

logger = logging.getLogger("zenith.routing")


def strip_query(raw: str) -> str:
    """Drop everything from the first ``?`` onward.

    ``"/login?x=1"`` -> ``"/login"``, ``"/?"`` -> ``"/"``.
    """
    return raw.partition("?")[0]


class RouteTable:
    """Mapping of ``(method, path)`` to a registered ``Route``.

    Usage::

        table = RouteTable()
        table.register("GET", "/", home)
        table.register("GET", "/logout", logout, guards=[login_required])
        table.compile()
        route = table.lookup("GET", "/logout")

    Registering the same ``(method, path)`` twice keeps the last handler.
    """

    __slots__ = ("_compiled", "_routes")

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], Route] = {}
        self._compiled = False

    def register(
        self,
        method: str,
        path: str,
        handler: Handler,
        *,
        guards: Iterable[Guard] = (),
        name: str | None = None,
    ) -> Route:
        """Store *handler* under ``(method, path)`` and return the Route.

        Raises ``ConfigurationError`` for an unknown method or a handler
        that is not callable, and ``RuntimeError`` after ``compile()``.
        """
        if self._compiled:
            msg = "Cannot register routes after the route table is compiled."
            raise RuntimeError(msg)

        method = method.upper()
        if method not in HTTP_METHODS:
            allowed = ", ".join(sorted(HTTP_METHODS))
            msg = f"Unsupported HTTP method {method!r} for {path!r}. Allowed: {allowed}"
            raise ConfigurationError(msg)
        if not callable(handler):
            msg = f"Handler for {method} {path!r} is not callable: {handler!r}"
            raise ConfigurationError(msg)
        guard_tuple = tuple(guards)
        for guard in guard_tuple:
            if not callable(guard):
                msg = f"Guard for {method} {path!r} is not callable: {guard!r}"
                raise ConfigurationError(msg)

        route = Route(method=method, path=path, handler=handler, guards=guard_tuple, name=name)
        if route.key in self._routes:
            logger.debug("Overwriting route %s %s", method, path)
            # Re-insert so introspection order follows the latest registration.
            del self._routes[route.key]
        self._routes[route.key] = route
        return route

    def lookup(self, method: str, path: str) -> Route:
        """Return the route for ``(method, path)``.

        Raises ``NotFound`` when nothing is registered for the pair.
        """
        route = self._routes.get((method.upper(), path))
        if route is None:
            raise NotFound(f"No route matches {method} {path!r}")
        return route

    def compile(self) -> None:
        """Freeze the table. Later registrations raise ``RuntimeError``."""
        self._compiled = True

    @property
    def compiled(self) -> bool:
        return self._compiled

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return list(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, key: object) -> bool:
        return key in self._routes
