"""Per-cycle guard chain.

The chain holds the guards for exactly one dispatch cycle. The
dispatcher attaches the matched route's guards, runs them, and resets
the chain when the cycle ends, however it ends. Guards attached for
one route never run for the next one.
"""

import logging
from collections.abc import Iterable

from zenith._internal.invoke import invoke
from zenith._internal.types import Guard
from zenith.http.request import Request
from zenith.middleware.protocol import PASS, GuardResult, Reject, as_guard_result

logger = logging.getLogger("zenith.middleware")


class MiddlewareChain:
    """An ordered list of guards for the next dispatch cycle.

    Usage::

        chain = MiddlewareChain()
        chain.attach([login_required])
        result = await chain.run_all(request)
        chain.reset()
    """

    __slots__ = ("_guards",)

    def __init__(self) -> None:
        self._guards: list[Guard] = []

    def attach(self, guards: Iterable[Guard]) -> None:
        """Append *guards* to the active chain."""
        self._guards.extend(guards)

    async def run_all(self, request: Request) -> GuardResult:
        """Run guards in order; the first ``Reject`` short-circuits.

        An empty chain passes.
        """
        for guard in self._guards:
            result = as_guard_result(await invoke(guard, request), guard)
            if isinstance(result, Reject):
                logger.debug(
                    "Guard %s rejected %s %s",
                    getattr(guard, "__name__", guard),
                    request.method,
                    request.path,
                )
                return result
        return PASS

    def reset(self) -> None:
        """Empty the chain."""
        self._guards.clear()

    @property
    def active(self) -> tuple[Guard, ...]:
        return tuple(self._guards)

    def __len__(self) -> int:
        return len(self._guards)
