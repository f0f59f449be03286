"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups in application code. ``AppConfig.from_env()`` builds
one from environment variables (after loading a ``.env`` file), and
``config_value()`` offers dotted-key lookup for the rare dynamic case.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def env(
    key: str, default: str | None = None, *, environ: Mapping[str, str] | None = None
) -> str | None:
    """Return an environment variable, or *default* if it is unset."""
    source = os.environ if environ is None else environ
    return source.get(key, default)


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


@dataclass(frozen=True, slots=True)
class DatabaseSettings:
    """Database connection settings.

    ``url`` uses the ``sqlite:///path`` or ``postgresql://...`` scheme.
    ``migrations`` points at the migrations directory; when set, the app
    applies pending migrations at startup.
    """

    url: str = "sqlite:///zenith.db"
    migrations: str | None = None
    pool_size: int = 5
    echo: bool = False


@dataclass(frozen=True, slots=True)
class SessionSettings:
    """Session cookie settings. ``lifetime`` is in minutes."""

    lifetime: int = 120
    cookie_name: str = "zenith_session"
    secure_cookie: bool = False


@dataclass(frozen=True, slots=True)
class GoogleSettings:
    """Google OAuth client settings. Sign-in is enabled when all three are set."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_uri)


@dataclass(frozen=True, slots=True)
class AuthSettings:
    login_url: str = "/login"
    home_url: str = "/"
    google: GoogleSettings = field(default_factory=GoogleSettings)
    session: SessionSettings = field(default_factory=SessionSettings)


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, secret_key="s3cr3t")
    """

    name: str = "Zenith"
    env: str = "production"
    debug: bool = False
    url: str = "http://localhost:8000"

    # Security
    secret_key: str = ""

    # Templates
    template_dir: str | Path = "templates"
    autoescape: bool = True

    # Logging
    log_level: str = "info"

    # Handlers and migrations run without a deadline unless one is set here.
    request_timeout: float | None = None

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    auth: AuthSettings = field(default_factory=AuthSettings)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        dotenv_path: str | Path | None = None,
        **overrides: Any,
    ) -> AppConfig:
        """Build a config from environment variables.

        Loads ``.env`` (or *dotenv_path*) into ``os.environ`` first, without
        overriding variables that are already set. Pass *environ* to read
        from an explicit mapping instead (the ``.env`` file is then ignored).
        Keyword *overrides* replace top-level fields after parsing.
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        def get(key: str, default: str | None = None) -> str | None:
            return env(key, default, environ=environ)

        google = GoogleSettings(
            client_id=get("GOOGLE_CLIENT_ID", "") or "",
            client_secret=get("GOOGLE_CLIENT_SECRET", "") or "",
            redirect_uri=get("GOOGLE_REDIRECT_URI", "") or "",
        )
        session = SessionSettings(
            lifetime=_env_int(get("SESSION_LIFETIME"), 120),
            secure_cookie=_env_bool(get("SESSION_SECURE_COOKIE"), False),
        )
        database = DatabaseSettings(
            url=get("DATABASE_URL", "sqlite:///zenith.db") or "sqlite:///zenith.db",
            migrations=get("DB_MIGRATIONS") or None,
            echo=_env_bool(get("DB_ECHO"), False),
        )
        timeout = get("REQUEST_TIMEOUT")
        values: dict[str, Any] = {
            "name": get("APP_NAME", "Zenith"),
            "env": get("APP_ENV", "production"),
            "debug": _env_bool(get("APP_DEBUG"), False),
            "url": get("APP_URL", "http://localhost:8000"),
            "secret_key": get("APP_KEY", "") or "",
            "template_dir": get("TEMPLATE_DIR", "templates"),
            "log_level": get("LOG_LEVEL", "info"),
            "request_timeout": float(timeout) if timeout else None,
            "database": database,
            "auth": AuthSettings(google=google, session=session),
        }
        values.update(overrides)
        return cls(**values)


def config_value(config: AppConfig, key: str, default: Any = None) -> Any:
    """Look up a dotted key such as ``"auth.google.client_id"``.

    Returns *default* when any segment is missing.
    """
    node: Any = config
    for part in key.split("."):
        if not is_dataclass(node) or part not in {f.name for f in fields(node)}:
            return default
        node = getattr(node, part)
    return node
