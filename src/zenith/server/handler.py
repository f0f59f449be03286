"""ASGI handler: translates ASGI scope/messages to zenith types.

The only component that touches raw ASGI directly. Converts the scope to
a typed Request, runs it through the app middleware and a per-request
Dispatcher, and sends the Response back through ASGI ``send()``.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable, Mapping
from contextvars import Token
from typing import TYPE_CHECKING, Any

from zenith._internal.asgi import Receive, Scope, Send
from zenith.context import request_var
from zenith.data.errors import DataError
from zenith.errors import HTTPError
from zenith.http.request import Request
from zenith.http.response import Response, not_found_response
from zenith.middleware.protocol import Next
from zenith.routing import RouteTable
from zenith.server.dispatcher import Dispatcher
from zenith.server.sender import send_response

if TYPE_CHECKING:
    from kida import Environment

logger = logging.getLogger("zenith.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    table: RouteTable,
    middleware: tuple[Callable[..., Any], ...],
    kida_env: Environment | None = None,
    providers: Mapping[type, Callable[..., Any]] | None = None,
    timeout: float | None = None,
    debug: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    token: Token[Request] = request_var.set(request)

    try:

        async def dispatch(req: Request) -> Response:
            dispatcher = Dispatcher(table, providers=providers, kida_env=kida_env, timeout=timeout)
            return await dispatcher.dispatch(req)

        # Wrap middleware around the dispatch, first added runs outermost
        handler: Next = dispatch
        for mw in reversed(middleware):

            async def make_next(req: Request, _mw: Any = mw, _next: Next = handler) -> Response:
                return await _mw(req, _next)

            handler = make_next

        response = await handler(request)

    except HTTPError as exc:
        response = _http_error_response(exc)
    except DataError as exc:
        logger.exception("Store failure on %s %s", request.method, request.path)
        response = _internal_error_response(exc, debug)
    except Exception as exc:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        response = _internal_error_response(exc, debug)
    finally:
        request_var.reset(token)

    await send_response(response, send)


def _http_error_response(exc: HTTPError) -> Response:
    if exc.status == 404:
        response = not_found_response()
    else:
        response = Response(
            body=exc.detail or str(exc.status),
            status=exc.status,
            content_type="text/plain; charset=utf-8",
        )
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def _internal_error_response(exc: Exception, debug: bool) -> Response:
    body = "Internal Server Error"
    if debug:
        body = "".join(traceback.format_exception(exc))
    return Response(body=body, status=500, content_type="text/plain; charset=utf-8")
