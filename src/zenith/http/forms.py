"""URL-encoded form parsing.

Only ``application/x-www-form-urlencoded`` bodies are supported; the
scaffold's forms (login, register) never upload files.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class FormData(Mapping[str, str]):
    """Parsed form fields. ``form["email"]`` returns the first value."""

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, list[str]] | None = None) -> None:
        self._data = data or {}

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FormData({self._data!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(key, ()))


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a request body as form data.

    Raises ``ValueError`` for any content type other than URL-encoded.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type != "application/x-www-form-urlencoded":
        msg = f"Unsupported form content type: {media_type!r}"
        raise ValueError(msg)
    return FormData(parse_qs(body.decode("utf-8"), keep_blank_values=True))
