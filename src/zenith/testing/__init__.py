"""Test utilities for zenith applications::

    from zenith.testing import TestClient
"""

from zenith.testing.client import TestClient

__all__ = ["TestClient"]
