"""Middleware protocols.

Two kinds of middleware exist:

- **App middleware** wraps every request, matched or not::

      async def mw(request: Request, next: Next) -> Response: ...

  Sessions and user loading are app middleware.

- **Guards** run only for a matched route, after lookup and before the
  handler. A guard takes the request and returns ``PASS`` or a
  ``Reject`` carrying the response to send instead::

      def admin_only(request: Request) -> GuardResult:
          if not current_user().is_admin:
              return Reject(Redirect("/"))
          return PASS

No base class is required for either. The framework checks the shape,
not the lineage.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from zenith.errors import ConfigurationError
from zenith.http.request import Request
from zenith.http.response import Response

# The next handler in the app middleware pipeline
type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for app middleware (function or callable object)."""

    async def __call__(self, request: Request, next: Next) -> Response: ...


@dataclass(frozen=True, slots=True)
class Pass:
    """Guard outcome: continue the dispatch cycle."""


@dataclass(frozen=True, slots=True)
class Reject:
    """Guard outcome: stop the cycle and send *response* instead.

    *response* may be anything a handler may return (``Response``,
    ``Redirect``, ``str``, ``dict``).
    """

    response: Any


type GuardResult = Pass | Reject

PASS = Pass()


def as_guard_result(value: Any, guard: object = None) -> GuardResult:
    """Normalise a guard's return value.

    ``None`` and ``Pass`` mean pass; a ``Reject`` is kept as is; any
    other value is a rejection with that value as the response.

    A ``bool`` is refused with ``ConfigurationError``: guards are not
    predicates, and ``True`` would otherwise read as a rejection.
    """
    if isinstance(value, bool):
        name = getattr(guard, "__qualname__", None) or repr(guard)
        msg = (
            f"Guard {name} returned {value!r}. "
            "Return PASS (or None) to continue, or Reject(response) to stop."
        )
        raise ConfigurationError(msg)
    if value is None or isinstance(value, Pass):
        return PASS
    if isinstance(value, Reject):
        return value
    return Reject(value)
