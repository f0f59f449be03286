"""Content negotiation: maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

from __future__ import annotations

import json as json_module
from typing import TYPE_CHECKING, Any

from zenith.errors import ConfigurationError
from zenith.http.response import Redirect, Response
from zenith.templating.returns import Template

if TYPE_CHECKING:
    from kida import Environment


def negotiate(value: Any, *, kida_env: Environment | None = None) -> Response:
    """Convert a handler's (or rejecting guard's) return value to a Response.

    Dispatch order:

    1. ``Response``         -> pass through
    2. ``Redirect``         -> 302 with Location header
    3. ``Template``         -> render via kida -> 200, text/html
    4. ``str``              -> 200, text/html
    5. ``bytes``            -> 200, application/octet-stream
    6. ``dict`` / ``list``  -> 200, application/json
    7. ``None``             -> 200, empty body
    8. ``(value, int)``     -> negotiate value, override status
    """
    match value:
        case Response():
            return value
        case Redirect():
            return Response(body="", status=value.status).with_header("Location", value.url)
        case Template():
            if kida_env is None:
                msg = (
                    "Template return type requires a template directory. "
                    "Set AppConfig.template_dir to an existing directory."
                )
                raise ConfigurationError(msg)
            from zenith.templating.integration import render_template

            return Response(body=render_template(kida_env, value))
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response(body=json_module.dumps(value), content_type="application/json")
        case None:
            return Response(body="")
        case (inner, int() as status):
            return negotiate(inner, kida_env=kida_env).with_status(status)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return a Response, Redirect, Template, str, bytes, dict or list."
            )
            raise TypeError(msg)
