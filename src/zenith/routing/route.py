"""Route frozen dataclass."""

from dataclasses import dataclass

from zenith._internal.types import Guard, Handler

HTTP_METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "DELETE"})


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route: one handler for one ``(method, path)`` pair.

    ``guards`` run in order before the handler on every dispatch cycle
    that matches this route.
    """

    method: str
    path: str
    handler: Handler
    guards: tuple[Guard, ...] = ()
    name: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.method, self.path)
