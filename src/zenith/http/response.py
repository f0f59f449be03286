"""HTTP response with a chainable ``.with_*()`` API.

Each transformation returns a new Response. Handlers may also return a
``Redirect``, a string, or a dict; the negotiation layer turns those
into Responses.
"""

from __future__ import annotations

import json as json_module
from dataclasses import dataclass, replace
from typing import Any

from zenith.http.cookies import SetCookie

NOT_FOUND_BODY = "404 - Page Not Found"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        return replace(self, headers=(*self.headers, (name, value)))

    def with_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> Response:
        cookie = SetCookie(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        return replace(self, cookies=(*self.cookies, cookie))

    def header(self, name: str) -> str | None:
        """Return the first header value named *name* (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    @property
    def location(self) -> str | None:
        return self.header("Location")


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect instruction. Converted to a 302 with a Location header."""

    url: str
    status: int = 302


def json_response(data: Any, status: int = 200) -> Response:
    """A JSON body with an explicit status code."""
    return Response(
        body=json_module.dumps(data),
        status=status,
        content_type="application/json",
    )


def not_found_response() -> Response:
    """The fixed 404 response for unmatched routes."""
    return Response(body=NOT_FOUND_BODY, status=404, content_type="text/plain; charset=utf-8")
