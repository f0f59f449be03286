"""Shared type aliases used across zenith modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: user-defined function, sync or async, variable signature
Handler: TypeAlias = Callable[..., Any]

# Guard: receives the request, returns a GuardResult (sync or async)
Guard: TypeAlias = Callable[..., Any]
