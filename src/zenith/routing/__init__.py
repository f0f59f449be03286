"""Routing: an exact-match route table keyed by ``(method, path)``.

Routes are registered during setup and the table is compiled (frozen)
when the app starts serving.
"""

from zenith.routing.route import HTTP_METHODS, Route
from zenith.routing.router import RouteTable, strip_query

__all__ = ["HTTP_METHODS", "Route", "RouteTable", "strip_query"]
