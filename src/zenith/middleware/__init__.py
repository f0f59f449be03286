"""Middleware and guards. Protocol-based, no inheritance required.

App middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

A guard is any callable matching:
    def guard(request: Request) -> GuardResult  (sync or async)

Built-in:
    SessionMiddleware -- Signed cookie sessions (itsdangerous)
    AuthMiddleware -- Loads the signed-in user from the session
    login_required, guest_only -- Route guards
"""

from zenith.middleware.auth import (
    AuthConfig,
    AuthMiddleware,
    current_user,
    guest_only,
    login_required,
)
from zenith.middleware.chain import MiddlewareChain
from zenith.middleware.protocol import PASS, GuardResult, Middleware, Next, Pass, Reject
from zenith.middleware.sessions import (
    SessionConfig,
    SessionMiddleware,
    flash,
    get_flash,
    get_session,
)

__all__ = [
    "PASS",
    "AuthConfig",
    "AuthMiddleware",
    "GuardResult",
    "Middleware",
    "MiddlewareChain",
    "Next",
    "Pass",
    "Reject",
    "SessionConfig",
    "SessionMiddleware",
    "current_user",
    "flash",
    "get_flash",
    "get_session",
    "guest_only",
    "login_required",
]
