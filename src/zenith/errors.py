"""Zenith exception hierarchy.

Shared across the route table, dispatcher, app and middleware so every
module raises and catches the same types.
"""


class ZenithError(Exception):
    """Base for all zenith-specific errors."""


class ConfigurationError(ZenithError):
    """Raised when app configuration is invalid.

    Typically raised at route registration or during ``App._freeze()``,
    before the first request is served.
    """


class HTTPError(ZenithError):
    """An error that maps directly to an HTTP status code.

    Raised by the route table, guards, or handlers. The ASGI handler
    converts these into plain responses. Attributes stay writable:
    ``contextlib`` assigns ``__traceback__`` when the error leaves
    ``anyio.fail_after``.
    """

    def __init__(
        self, status: int, detail: str = "", headers: tuple[tuple[str, str], ...] = ()
    ) -> None:
        super().__init__(status, detail)
        self.status = status
        self.detail = detail
        self.headers = headers

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route registered for the request method and path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class ValidationFailure(ZenithError):  # noqa: N818
    """User input was rejected.

    Handled by the dispatcher: the message is flashed into the session
    under ``flash_key`` and the client is redirected to ``redirect_to``.
    """

    def __init__(self, message: str, *, redirect_to: str, flash_key: str = "error") -> None:
        super().__init__(message)
        self.message = message
        self.redirect_to = redirect_to
        self.flash_key = flash_key
