"""Roost application class.

Mutable during setup (routes, screens, middleware, error handlers).
Frozen on the first request. Routes and screens may still be added
after the freeze; they go straight into the live router.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from roost._internal.asgi import Receive, Scope, Send
from roost._internal.invoke import invoke
from roost._internal.types import ErrorHandler, Handler, MiddlewareRef
from roost.config import AppConfig
from roost.errors import ConfigurationError
from roost.middleware.protocol import Middleware
from roost.routing.route import Route
from roost.routing.router import Router
from roost.screen import Screen, ScreenRegistry, bind_screen
from roost.server.handler import handle_request

logger = logging.getLogger("roost.server")

SCREEN_METHODS: tuple[str, ...] = ("GET", "POST")


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting for the freeze."""

    path: str
    handler: Handler
    methods: list[str] | None
    name: str | None
    middleware: tuple[Callable[..., Any], ...] = ()
    action: Any = None


class App:
    """The roost application.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread builds the router. Registering routes after the freeze
        mutates the live router and must not race with other
        registrations.
    """

    __slots__ = (
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_groups",
        "_middleware_list",
        "_pending_routes",
        "_router",
        "_screens",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[_PendingRoute] = []
        self._middleware_list: list[Middleware] = []
        self._middleware_groups: dict[str, list[Middleware]] = {"web": []}
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._screens = ScreenRegistry()
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Set by _freeze()
        self._router: Router | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        middleware: MiddlewareRef = (),
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name for ``url_for()``.
            middleware: Middleware group name(s) wrapped around this route.
        """

        def decorator(func: Handler) -> Handler:
            self.add_route(path, func, methods=methods, name=name, middleware=middleware)
            return func

        return decorator

    def add_route(
        self,
        path: str,
        handler: Handler,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        middleware: MiddlewareRef = (),
        action: Any = None,
    ) -> None:
        """Register a route imperatively. See ``route()``."""
        pending = _PendingRoute(
            path,
            handler,
            methods,
            name,
            self._resolve_middleware(middleware),
            action,
        )
        if self._frozen:
            assert self._router is not None
            self._router.add(self._build_route(pending))
        else:
            self._pending_routes.append(pending)
        logger.debug("Registered route %s name=%s", path, name)

    # -- Screens --

    def register_screen(self, identifier: str, screen: type[Screen]) -> None:
        """Make *screen* resolvable by the string *identifier*."""
        self._screens.register(identifier, screen)

    def resolve_screen(self, screen: str | type[Screen]) -> type[Screen]:
        """Resolve a screen class, registered identifier, or import path.

        Raises ``ScreenNotFound`` for unknown identifiers.
        """
        return self._screens.resolve(screen)

    def screen(
        self,
        path: str,
        screen: str | type[Screen],
        *,
        name: str | None = None,
        middleware: MiddlewareRef = "web",
    ) -> type[Screen]:
        """Serve *screen* at *path*: GET renders it, POST runs an action.

        Allowed before and after the app starts serving. After the freeze
        the route is matchable at once, but ``url_for()`` only sees it
        after ``router.refresh_name_lookups()``.
        """
        screen_cls = self.resolve_screen(screen)
        self.add_route(
            path,
            bind_screen(screen_cls),
            methods=list(SCREEN_METHODS),
            name=name,
            middleware=middleware,
            action=screen_cls,
        )
        return screen_cls

    # -- Middleware --

    def add_middleware(self, middleware: Middleware, *, group: str | None = None) -> None:
        """Add a middleware globally, or to the named route group."""
        if group is None:
            self._check_not_frozen()
            self._middleware_list.append(middleware)
            return
        self._middleware_groups.setdefault(group, []).append(middleware)

    def middleware_group(self, name: str, *middleware: Middleware) -> None:
        """Define (or replace) a named route middleware group."""
        self._middleware_groups[name] = list(middleware)

    def _resolve_middleware(self, ref: MiddlewareRef) -> tuple[Callable[..., Any], ...]:
        names = (ref,) if isinstance(ref, str) else tuple(ref)
        resolved: list[Callable[..., Any]] = []
        for group in names:
            if group not in self._middleware_groups:
                msg = f"Unknown middleware group {group!r}."
                raise ConfigurationError(msg)
            resolved.extend(self._middleware_groups[group])
        return tuple(resolved)

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    async def startup(self) -> None:
        """Freeze the app and run startup hooks in registration order."""
        self._ensure_frozen()
        for hook in self._startup_hooks:
            await invoke(hook)

    async def shutdown(self) -> None:
        """Run shutdown hooks in registration order."""
        for hook in self._shutdown_hooks:
            await invoke(hook)

    # -- URLs --

    @property
    def router(self) -> Router:
        """The live router (freezes the app on first access)."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    def url_for(self, name: str, **params: Any) -> str:
        """Build the URL of the route named *name*. See ``Router.url_for``."""
        return self.router.url_for(name, params)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        router = self.router

        await handle_request(
            scope,
            receive,
            send,
            router=router,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
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
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Build the router and capture middleware. Caller holds _freeze_lock."""
        router = Router()
        for pending in self._pending_routes:
            router.add(self._build_route(pending))
        router.compile()
        self._router = router
        self._pending_routes.clear()
        self._middleware = tuple(self._middleware_list)
        self._frozen = True
        logger.debug("App frozen with %d routes", len(router.routes))

    @staticmethod
    def _build_route(pending: _PendingRoute) -> Route:
        methods = frozenset(m.upper() for m in (pending.methods or ["GET"]))
        return Route(
            path=pending.path,
            handler=pending.handler,
            methods=methods,
            name=pending.name,
            middleware=pending.middleware,
            action=pending.action,
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify global middleware, error handlers, or hooks after "
                "the app has started serving requests."
            )
            raise RuntimeError(msg)
