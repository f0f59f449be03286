"""Session middleware: signed cookie sessions.

Session data is serialised as JSON and signed with ``itsdangerous``.
The session dict lives in a ContextVar for the duration of a request,
reachable through ``get_session()`` from handlers, guards and services.

Flash messages are one-shot notes stored in the session: ``flash()``
writes one, ``get_flash()`` reads and removes it.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from zenith.errors import ConfigurationError
from zenith.http.request import Request
from zenith.http.response import Response
from zenith.middleware.protocol import Next

_FLASH_KEY = "_flash"

_session_var: ContextVar[dict[str, Any] | None] = ContextVar("zenith_session", default=None)


def get_session() -> dict[str, Any]:
    """Return the current session dict.

    Raises ``LookupError`` outside a request with ``SessionMiddleware``.
    """
    session = _session_var.get()
    if session is None:
        msg = (
            "No active session. Ensure SessionMiddleware is added "
            "to the app before accessing the session."
        )
        raise LookupError(msg)
    return session


def regenerate_session() -> dict[str, Any]:
    """Discard all session data and return the (now empty) session.

    Called by ``login`` and ``logout`` to prevent session fixation.
    """
    session = get_session()
    session.clear()
    return session


def flash(key: str, message: str) -> None:
    """Store a one-shot message for the next request."""
    get_session().setdefault(_FLASH_KEY, {})[key] = message


def get_flash(key: str, default: str | None = None) -> str | None:
    """Read and remove a flash message.

    Returns *default* when there is no message or no active session.
    """
    session = _session_var.get()
    if not session or _FLASH_KEY not in session:
        return default
    messages = session[_FLASH_KEY]
    message = messages.pop(key, default)
    if not messages:
        del session[_FLASH_KEY]
    return message


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` is required; sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "zenith_session"
    max_age: int = 7200
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


class SessionMiddleware:
    """Signed cookie session middleware.

    Reads and verifies the session cookie, exposes the dict through
    ``get_session()``, then signs it back onto the response.

    Usage::

        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="zenith.session")

    def _load_session(self, request: Request) -> dict[str, Any]:
        cookie_value = request.cookies.get(self._config.cookie_name)
        if not cookie_value:
            return {}
        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadSignature:
            # Covers tampered and expired cookies (SignatureExpired subclasses it).
            return {}
        return data if isinstance(data, dict) else {}

    def _save_session(self, response: Response, session: dict[str, Any]) -> Response:
        cfg = self._config
        return response.with_cookie(
            cfg.cookie_name,
            self._serializer.dumps(session),
            max_age=cfg.max_age,
            path=cfg.path,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        """Load session, dispatch, then save session to response."""
        session = self._load_session(request)
        token = _session_var.set(session)
        try:
            response = await next(request)
        finally:
            _session_var.reset(token)
        return self._save_session(response, session)
