"""Immutable HTTP request.

Frozen metadata with async body access.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from zenith._internal.asgi import Receive, Scope
from zenith.http.cookies import parse_cookies
from zenith.http.forms import FormData, parse_form_data
from zenith.http.headers import Headers
from zenith.http.query import QueryParams


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


def split_target(raw: str) -> tuple[str, str]:
    """Split a request target into ``(path, query_string)``.

    Everything from the first ``?`` onward is the query string.
    """
    path, _, query = raw.partition("?")
    return path, query


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, query, cookies) is fixed at creation.
    The body is read lazily with ``body()``, ``json()`` or ``form()`` and
    cached after the first read.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    cookies: Mapping[str, str] = field(default_factory=dict)
    client: tuple[str, int] | None = None

    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string, as the client sent it."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    # -- Async body access --

    async def body(self) -> bytes:
        if "body" in self._cache:
            return self._cache["body"]
        chunks: list[bytes] = []
        while True:
            message = await self._receive()
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        data = b"".join(chunks)
        self._cache["body"] = data
        return data

    async def json(self) -> Any:
        return json_module.loads(await self.body())

    async def form(self) -> FormData:
        """Parse the body as URL-encoded form data (cached)."""
        if "form" not in self._cache:
            ct = self.content_type or "application/x-www-form-urlencoded"
            self._cache["form"] = parse_form_data(await self.body(), ct)
        return self._cache["form"]

    # -- Factories --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        headers = Headers(scope.get("headers", ()))
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(headers.get("cookie", "")),
            client=tuple(client) if client else None,
            _receive=receive,
        )

    @classmethod
    def from_target(
        cls,
        method: str,
        target: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> Request:
        """Create a Request from a method and a raw ``path?query`` target.

        Used by ``Dispatcher.dispatch_raw`` and by tests that bypass ASGI.
        """
        path, query = split_target(target)
        hdrs = Headers.from_dict(headers or {})

        async def receive() -> dict[str, Any]:
            return {"type": "http.request", "body": body, "more_body": False}

        return cls(
            method=method.upper(),
            path=path,
            headers=hdrs,
            query=QueryParams(query),
            cookies=parse_cookies(hdrs.get("cookie", "")),
            _receive=receive,
        )
