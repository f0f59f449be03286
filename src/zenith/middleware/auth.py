"""Authentication middleware and route guards.

``AuthMiddleware`` reads the user id from the session, loads the user
once per request and keeps it in a ContextVar. Handlers, guards and
templates read it through ``current_user()``.

Requires ``SessionMiddleware`` to run first.

Usage::

    from zenith.middleware.auth import AuthConfig, AuthMiddleware, login_required

    app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))
    app.add_middleware(AuthMiddleware(AuthConfig(load_user=users.find)))

    @app.get("/dashboard", guards=[login_required])
    def dashboard():
        return Template("dashboard.html", user=current_user())
"""

import logging
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, runtime_checkable

from zenith.errors import ConfigurationError
from zenith.http.request import Request
from zenith.http.response import Redirect, Response
from zenith.middleware.protocol import PASS, GuardResult, Next, Reject

logger = logging.getLogger("zenith.security")


@runtime_checkable
class User(Protocol):
    """Minimal user protocol: anything with ``id`` and ``is_authenticated``."""

    @property
    def id(self) -> Any: ...

    @property
    def is_authenticated(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class AnonymousUser:
    """Stand-in for guests, so ``current_user()`` never returns ``None``."""

    id: int = 0
    name: str = ""
    email: str = ""
    role: str = "guest"
    is_authenticated: bool = False
    is_admin: bool = False


ANONYMOUS = AnonymousUser()

_user_var: ContextVar[Any] = ContextVar("zenith_user")


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Authentication middleware configuration.

    Attributes:
        load_user: Async callback loading a user by id, or ``None``.
        session_key: Session key holding the signed-in user's id.
        login_url: Where ``login_required`` sends guests.
        home_url: Where ``guest_only`` sends signed-in users.
    """

    load_user: Callable[[int], Awaitable[Any | None]] | None = None
    session_key: str = "user_id"
    login_url: str = "/login"
    home_url: str = "/"


_active_config: ContextVar[AuthConfig | None] = ContextVar("zenith_auth_config", default=None)


def current_user() -> Any:
    """Return the signed-in user, or ``AnonymousUser`` for guests.

    Never raises. Registered as a template global, so layouts can write::

        {% if current_user().is_authenticated %}Hello, {{ current_user().name }}!{% endif %}
    """
    try:
        return _user_var.get()
    except LookupError:
        return ANONYMOUS


def _require_config(action: str) -> AuthConfig:
    config = _active_config.get()
    if config is None:
        msg = f"{action}() requires AuthMiddleware to be active."
        raise LookupError(msg)
    return config


def login(user: Any) -> None:
    """Sign *user* in: regenerate the session and remember their id."""
    from zenith.middleware.sessions import regenerate_session

    config = _require_config("login")
    session = regenerate_session()
    session[config.session_key] = user.id
    _user_var.set(user)
    logger.info("User %s signed in", user.id)


def logout() -> None:
    """Sign the current user out and discard the whole session."""
    from zenith.middleware.sessions import regenerate_session

    _require_config("logout")
    regenerate_session()
    _user_var.set(ANONYMOUS)


# -- Guards --


def login_required(request: Request) -> GuardResult:
    """Reject guests with a redirect to the login page."""
    if current_user().is_authenticated:
        return PASS
    config = _active_config.get() or AuthConfig()
    return Reject(Redirect(config.login_url))


def guest_only(request: Request) -> GuardResult:
    """Redirect signed-in users away from the login and register pages."""
    if not current_user().is_authenticated:
        return PASS
    config = _active_config.get() or AuthConfig()
    return Reject(Redirect(config.home_url))


class AuthMiddleware:
    """Session authentication middleware.

    Middleware ordering::

        app.add_middleware(SessionMiddleware(...))  # 1st: sessions
        app.add_middleware(AuthMiddleware(...))     # 2nd: auth
    """

    __slots__ = ("_config",)

    # Picked up by App when building the template environment.
    template_globals: ClassVar[dict[str, Any]] = {
        "current_user": current_user,
    }

    def __init__(self, config: AuthConfig | None = None) -> None:
        self._config = config or AuthConfig()

    @property
    def config(self) -> AuthConfig:
        return self._config

    async def _authenticate_session(self) -> Any | None:
        from zenith.middleware.sessions import get_session

        if self._config.load_user is None:
            return None
        try:
            session = get_session()
        except LookupError:
            msg = "AuthMiddleware requires SessionMiddleware. Add SessionMiddleware first."
            raise ConfigurationError(msg) from None

        user_id = session.get(self._config.session_key)
        if not user_id:
            return None
        user = await self._config.load_user(int(user_id))
        if user is None:
            # Stale id (user deleted): drop it so the next request is a guest.
            session.pop(self._config.session_key, None)
        return user

    async def __call__(self, request: Request, next: Next) -> Response:
        user = await self._authenticate_session()
        token = _user_var.set(user if user is not None else ANONYMOUS)
        config_token = _active_config.set(self._config)
        try:
            return await next(request)
        finally:
            _user_var.reset(token)
            _active_config.reset(config_token)
