"""Zenith application class.

Mutable during setup (route registration, middleware, providers).
Frozen at runtime when ``__call__()`` is first invoked.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from zenith._internal.asgi import Receive, Scope, Send
from zenith._internal.invoke import invoke
from zenith._internal.types import Guard, Handler
from zenith.config import AppConfig
from zenith.data.database import Database
from zenith.data.migrate import MigrationResult, migrate
from zenith.data.store import Store
from zenith.logs import configure_logging
from zenith.middleware.protocol import Middleware
from zenith.middleware.sessions import get_flash
from zenith.routing import Route, RouteTable
from zenith.server.handler import handle_request

if TYPE_CHECKING:
    from kida import Environment

logger = logging.getLogger("zenith.app")


class App:
    """The zenith application.

    Owns the route table, the database and its ``Store``, the app-wide
    middleware and the service providers handlers are injected with.

    Usage::

        app = App(AppConfig.from_env())

        @app.get("/")
        def home():
            return Template("home/index.html", title="Home")

        @app.get("/logout", guards=[login_required])
        def do_logout(auth: Auth):
            auth.logout()
            return Redirect("/login")

    Serve it with any ASGI server (``uvicorn app:app``).
    """

    __slots__ = (
        "_db",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_middleware",
        "_middleware_list",
        "_migrations_dir",
        "_providers",
        "_shutdown_hooks",
        "_startup_hooks",
        "_store",
        "_table",
        "_template_globals",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        db: Database | str | None = None,
        migrations: str | Path | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._table = RouteTable()
        self._middleware_list: list[Middleware] = []
        self._providers: dict[type, Callable[..., Any]] = {}
        self._template_globals: dict[str, Any] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen = False
        self._freeze_lock = threading.Lock()

        # Database: an explicit instance or URL wins over the config.
        settings = self.config.database
        if isinstance(db, Database):
            self._db = db
        else:
            self._db = Database(
                db or settings.url, pool_size=settings.pool_size, echo=settings.echo
            )
        self._store = Store(self._db)

        # Migrations directory: when set, pending migrations run at startup.
        self._migrations_dir = migrations if migrations is not None else settings.migrations

        self._providers[Database] = lambda: self._db
        self._providers[Store] = lambda: self._store

        self._middleware: tuple[Callable[..., Any], ...] = ()
        self._kida_env: Environment | None = None

    # -- Route registration --

    def add_route(
        self,
        method: str,
        path: str,
        handler: Handler,
        *,
        guards: Iterable[Guard] = (),
        name: str | None = None,
    ) -> Route:
        """Register *handler* for ``(method, path)``.

        Raises ``ConfigurationError`` right away for an unknown method or a
        non-callable handler or guard.
        """
        self._check_not_frozen()
        return self._table.register(method, path, handler, guards=guards, name=name)

    def route(
        self,
        path: str,
        *,
        methods: Iterable[str] | None = None,
        guards: Iterable[Guard] = (),
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: Exact URL path. No parameters or wildcards.
            methods: HTTP methods. Defaults to ``["GET"]``.
            guards: Guards run in order before the handler.
            name: Optional route name, shown by ``zenith routes``.
        """
        guard_tuple = tuple(guards)

        def decorator(func: Handler) -> Handler:
            for method in methods or ("GET",):
                self.add_route(method, path, func, guards=guard_tuple, name=name)
            return func

        return decorator

    def get(
        self, path: str, *, guards: Iterable[Guard] = (), name: str | None = None
    ) -> Callable[[Handler], Handler]:
        return self.route(path, methods=["GET"], guards=guards, name=name)

    def post(
        self, path: str, *, guards: Iterable[Guard] = (), name: str | None = None
    ) -> Callable[[Handler], Handler]:
        return self.route(path, methods=["POST"], guards=guards, name=name)

    def put(
        self, path: str, *, guards: Iterable[Guard] = (), name: str | None = None
    ) -> Callable[[Handler], Handler]:
        return self.route(path, methods=["PUT"], guards=guards, name=name)

    def delete(
        self, path: str, *, guards: Iterable[Guard] = (), name: str | None = None
    ) -> Callable[[Handler], Handler]:
        return self.route(path, methods=["DELETE"], guards=guards, name=name)

    @property
    def routes(self) -> list[Route]:
        return self._table.routes

    # -- Service injection --

    def provide(self, annotation: type, factory: Callable[..., Any]) -> None:
        """Register a provider factory for dependency injection.

        When a handler parameter's type annotation matches *annotation*,
        zenith calls *factory* (with no arguments) and injects the result::

            app.provide(Auth, lambda: auth)

            @app.post("/login")
            async def do_login(request: Request, auth: Auth): ...

        ``Database`` and ``Store`` are provided by default.
        """
        self._check_not_frozen()
        self._providers[annotation] = factory

    @property
    def db(self) -> Database:
        return self._db

    @property
    def store(self) -> Store:
        return self._store

    @property
    def migrations_dir(self) -> str | Path | None:
        return self._migrations_dir

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add an app middleware. The first one added runs outermost."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def template_global(
        self, name: str | None = None
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template global."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_globals[name or func.__name__] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook.

        Hooks run in registration order during ASGI lifespan startup,
        after the database is connected and migrated.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook, run before the database closes."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    async def run_migrations(self) -> MigrationResult | None:
        """Apply pending migrations, if a migrations directory is configured."""
        if self._migrations_dir is None:
            return None
        result = await migrate(self._db, self._migrations_dir)
        logger.info(result.summary)
        return result

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()

        await handle_request(
            scope,
            receive,
            send,
            table=self._table,
            middleware=self._middleware,
            kida_env=self._kida_env,
            providers=self._providers,
            timeout=self.config.request_timeout,
            debug=self.config.debug,
        )

    async def startup(self) -> None:
        """Connect the database, run migrations, then the startup hooks."""
        self._ensure_frozen()
        await self._db.connect()
        await self.run_migrations()
        for hook in self._startup_hooks:
            await invoke(hook)

    async def shutdown(self) -> None:
        for hook in self._shutdown_hooks:
            await invoke(hook)
        await self._db.disconnect()

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Freeze exactly once, even if two workers race on the first request."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        configure_logging(self.config.log_level)

        self._table.compile()
        self._middleware = tuple(self._middleware_list)

        # Middleware can contribute template globals (AuthMiddleware -> current_user).
        template_globals: dict[str, Any] = {
            "app_name": self.config.name,
            "get_flash": get_flash,
        }
        for mw in self._middleware:
            mw_globals = getattr(mw, "template_globals", None)
            if isinstance(mw_globals, dict):
                template_globals.update(mw_globals)
        template_globals.update(self._template_globals)

        template_dir = Path(self.config.template_dir)
        if template_dir.is_dir():
            from zenith.templating.integration import create_environment

            self._kida_env = create_environment(self.config, template_globals)

        self._frozen = True
        logger.debug("App frozen with %d routes", len(self._table))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and providers before the first request."
            )
            raise RuntimeError(msg)
