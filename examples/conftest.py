"""Shared pytest configuration for zenith examples.

``example_app`` executes the ``app.py`` next to the requesting test in a
fresh module namespace, with the environment pinned to an in-memory
database and a throwaway secret, so every test starts from an empty
schema and an empty session. Override ``example_env`` in a test module
or class to add variables (Google credentials, for instance).
"""

import importlib.util
from pathlib import Path

import pytest


@pytest.fixture
def example_env() -> dict[str, str]:
    return {}


@pytest.fixture
def example_app(
    request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch, example_env: dict[str, str]
):
    """Load a fresh App from the sibling app.py next to the test file."""
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("APP_KEY", "test-secret")
    for key in ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REDIRECT_URI"):
        monkeypatch.delenv(key, raising=False)
    for key, value in example_env.items():
        monkeypatch.setenv(key, value)

    app_path = Path(request.path).parent / "app.py"
    spec = importlib.util.spec_from_file_location(f"example_{app_path.parent.name}", app_path)
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.app
