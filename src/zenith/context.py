"""Request-scoped context via ContextVar.

``request_var`` holds the current ``Request`` for this task. It is set by
the ASGI handler before dispatch and reset afterwards.
"""

from contextvars import ContextVar

from zenith.http.request import Request

request_var: ContextVar[Request] = ContextVar("zenith_request")


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()
