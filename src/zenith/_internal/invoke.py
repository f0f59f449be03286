"""Invoke helpers: call sync or async callables uniformly.

Handlers, guards and migration steps can be ``def`` or ``async def``.
Any code that calls one of them goes through ``invoke`` so the
sync/async check lives in exactly one place.

Usage::

    from zenith._internal.invoke import invoke

    result = await invoke(handler, *args, **kwargs)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
