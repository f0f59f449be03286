"""Request dispatch: route lookup, guard chain, handler call.

One ``dispatch()`` call is one cycle through a small state machine::

    IDLE -> MATCHING -> NOT_FOUND                      -> IDLE
                     -> MIDDLEWARE_CHECK -> REJECTED   -> IDLE
                                         -> HANDLING   -> IDLE

The guard chain is reset when the cycle ends, however it ends, so
guards attached for one route never leak into the next cycle. The app
creates a fresh ``Dispatcher`` per request; a dispatcher driven directly
(tests, ``dispatch_raw``) is safe to reuse sequentially.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

import anyio

from zenith._internal.invoke import invoke
from zenith._internal.types import Guard
from zenith.errors import NotFound, ValidationFailure
from zenith.http.request import Request
from zenith.http.response import Redirect, Response, not_found_response
from zenith.middleware.chain import MiddlewareChain
from zenith.middleware.protocol import Reject
from zenith.middleware.sessions import flash
from zenith.routing import Route, RouteTable, strip_query
from zenith.server.negotiation import negotiate

if TYPE_CHECKING:
    from kida import Environment

logger = logging.getLogger("zenith.server")


class DispatchState(Enum):
    IDLE = "idle"
    MATCHING = "matching"
    NOT_FOUND = "not_found"
    MIDDLEWARE_CHECK = "middleware_check"
    REJECTED = "rejected"
    HANDLING = "handling"


class Dispatcher:
    """Resolve one request against a route table.

    Usage::

        table = RouteTable()
        table.register("GET", "/", home)
        table.compile()

        response = await Dispatcher(table).dispatch_raw("GET", "/?ref=x")
    """

    __slots__ = ("_chain", "_kida_env", "_providers", "_state", "_table", "_timeout")

    def __init__(
        self,
        table: RouteTable,
        *,
        chain: MiddlewareChain | None = None,
        providers: Mapping[type, Callable[..., Any]] | None = None,
        kida_env: Environment | None = None,
        timeout: float | None = None,
    ) -> None:
        self._table = table
        self._chain = chain if chain is not None else MiddlewareChain()
        self._providers = providers or {}
        self._kida_env = kida_env
        self._timeout = timeout
        self._state = DispatchState.IDLE

    @property
    def state(self) -> DispatchState:
        return self._state

    @property
    def chain(self) -> MiddlewareChain:
        return self._chain

    def attach(self, guards: Iterable[Guard]) -> None:
        """Add guards for the next cycle only, ahead of the route's own."""
        self._chain.attach(guards)

    async def dispatch(self, request: Request) -> Response:
        """Run one full cycle and return the response."""
        try:
            self._state = DispatchState.MATCHING
            try:
                route = self._table.lookup(request.method, strip_query(request.path))
            except NotFound:
                self._state = DispatchState.NOT_FOUND
                logger.debug("No route for %s %s", request.method, request.path)
                return not_found_response()

            self._state = DispatchState.MIDDLEWARE_CHECK
            self._chain.attach(route.guards)
            result = await self._chain.run_all(request)
            if isinstance(result, Reject):
                self._state = DispatchState.REJECTED
                return negotiate(result.response, kida_env=self._kida_env)

            self._state = DispatchState.HANDLING
            try:
                with anyio.fail_after(self._timeout):
                    value = await self._call_handler(route, request)
            except ValidationFailure as exc:
                return self._reject_input(exc)
            return negotiate(value, kida_env=self._kida_env)
        finally:
            self._chain.reset()
            self._state = DispatchState.IDLE

    async def dispatch_raw(
        self,
        method: str,
        target: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> Response:
        """Dispatch a bare ``(method, "path?query")`` pair."""
        return await self.dispatch(Request.from_target(method, target, headers=headers, body=body))

    async def _call_handler(self, route: Route, request: Request) -> Any:
        kwargs = _build_handler_kwargs(route.handler, request, self._providers)
        return await invoke(route.handler, **kwargs)

    def _reject_input(self, exc: ValidationFailure) -> Response:
        try:
            flash(exc.flash_key, exc.message)
        except LookupError:
            logger.warning("No session to flash %r into: %s", exc.flash_key, exc.message)
        return negotiate(Redirect(exc.redirect_to))


def _build_handler_kwargs(
    handler: Callable[..., Any],
    request: Request,
    providers: Mapping[type, Callable[..., Any]],
) -> dict[str, Any]:
    """Inspect the handler signature and build its kwargs.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. Service providers (by type annotation via ``app.provide()``)

    Parameters matching neither are left to their defaults.
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif param.annotation is not inspect.Parameter.empty and param.annotation in providers:
            kwargs[name] = providers[param.annotation]()

    return kwargs
