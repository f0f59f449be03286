"""Zenith: a minimal async MVC web scaffold.

Exact-match routing with per-route guards, a generic CRUD store, session
authentication with optional Google sign-in, kida views and a
ledger-based migration runner.

Basic usage::

    from zenith import App, AppConfig, Template

    app = App(AppConfig.from_env())

    @app.get("/")
    def index():
        return Template("home/index.html", title="Home")

Serve with any ASGI server::

    uvicorn app:app

Migrations::

    zenith migrate app:app
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "NotFound",
    "Redirect",
    "Reject",
    "Request",
    "Response",
    "Template",
    "ValidationFailure",
    "ZenithError",
    "current_user",
    "flash",
    "get_flash",
    "get_request",
    "guest_only",
    "json_response",
    "login_required",
]


def __getattr__(name: str) -> object:
    if name == "App":
        from zenith.app import App

        return App

    if name == "AppConfig":
        from zenith.config import AppConfig

        return AppConfig

    if name == "Request":
        from zenith.http.request import Request

        return Request

    if name in ("Response", "Redirect", "json_response"):
        from zenith.http import response as _resp

        return getattr(_resp, name)

    if name == "Template":
        from zenith.templating.returns import Template

        return Template

    if name == "Reject":
        from zenith.middleware.protocol import Reject

        return Reject

    if name in ("current_user", "guest_only", "login_required"):
        from zenith.middleware import auth as _auth

        return getattr(_auth, name)

    if name in ("flash", "get_flash"):
        from zenith.middleware import sessions as _sessions

        return getattr(_sessions, name)

    if name == "get_request":
        from zenith.context import get_request

        return get_request

    if name in ("ConfigurationError", "HTTPError", "NotFound", "ValidationFailure", "ZenithError"):
        from zenith import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
