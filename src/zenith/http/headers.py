"""Case-insensitive, read-only request headers.

Built from the raw ASGI byte pairs; names are lower-cased and values
decoded once, at construction.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Read-only, case-insensitive header mapping.

    ``headers["Accept"]`` returns the first value; ``get_list`` returns
    every value sent under a name.
    """

    __slots__ = ("_values",)

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        values: dict[str, list[str]] = {}
        for name, value in raw:
            key = name.decode("latin-1").lower()
            values.setdefault(key, []).append(value.decode("latin-1"))
        self._values = values

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> Headers:
        return cls((k.encode("latin-1"), v.encode("latin-1")) for k, v in headers.items())

    def __getitem__(self, key: str) -> str:
        return self._values[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def get_list(self, key: str) -> list[str]:
        """Return every value for *key*, in the order received."""
        return list(self._values.get(key.lower(), ()))
