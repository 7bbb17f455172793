# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""HttpEngine - the ASGI engine controllers are mounted into.

HttpEngine is the thin HTTP layer under the controller registry. It owns:

- the ordered list of mounted RoutingScopes (one per controller)
- prefix-mounted sub-applications (e.g. the Swagger UI page)
- static directories served ahead of the routes
- the middleware chain (errors, access logging, user middleware)
- the uvicorn server used by listen()/close()

Architecture:
    HttpEngine
        ├── scopes: tuple[RoutingScope, ...]     (mount order = match order)
        ├── mounts: tuple[(prefix, ASGIApp)]
        ├── static: list of StaticFilesMiddleware options
        ├── middleware chain → Dispatcher
        └── uvicorn.Server (background thread while listening)

Request flow:
    uvicorn → HttpEngine.__call__
        → ErrorMiddleware → LoggingMiddleware → user middleware
        → StaticFilesMiddleware (falls through on miss)
        → Dispatcher → mounts / RoutingScope.resolve → endpoint

The middleware chain is built lazily on the first request and rebuilt after
any configuration change (add_middleware, serve_static, mount_app). Scope
mounting does not invalidate it: the Dispatcher reads the scope tuple on
every request.

listen() does not block on serving: uvicorn runs in a daemon thread and
listen() returns once the socket is bound, or raises OSError if the listener
died first. close() asks uvicorn to exit and joins the thread; it is a
no-op when not listening.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import uvicorn

from .dispatcher import Dispatcher
from ..middleware import middleware_chain
from ..middleware.static import StaticFilesMiddleware

if TYPE_CHECKING:
    from .routing import RoutingScope
    from ..middleware import BaseMiddleware
    from ..types import ASGIApp, Receive, Scope, Send

__all__ = ["HttpEngine", "DEFAULT_HOST", "DEFAULT_PORT"]

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def _bound_port(server: uvicorn.Server | None) -> int | None:
    if server is None or not server.started:
        return None
    for listener in server.servers:
        for sock in listener.sockets:
            return int(sock.getsockname()[1])
    return None


class HttpEngine:
    """ASGI engine: routing scopes, static files, middleware and the listener."""

    __slots__ = (
        "logger",
        "middleware",
        "middleware_options",
        "_scopes",
        "_mounts",
        "_static",
        "_user_middleware",
        "_app",
        "_lock",
        "_server",
        "_thread",
    )

    def __init__(
        self,
        middleware: Mapping[str, Any] | str | list[str] | None = None,
        middleware_options: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize HttpEngine.

        Args:
            middleware: Registry middleware on/off config, e.g. {"logging": True}.
            middleware_options: ``{name}_middleware`` option dicts.
        """
        self.logger = logging.getLogger("asgi_service")
        self.middleware = middleware
        self.middleware_options = middleware_options
        self._scopes: tuple[RoutingScope, ...] = ()
        self._mounts: tuple[tuple[str, ASGIApp], ...] = ()
        self._static: list[dict[str, Any]] = []
        self._user_middleware: list[tuple[type[BaseMiddleware], dict[str, Any]]] = []
        self._app: ASGIApp | None = None
        self._lock = threading.RLock()
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

    # -- Routing --

    @property
    def scopes(self) -> tuple[RoutingScope, ...]:
        return self._scopes

    @property
    def mounts(self) -> tuple[tuple[str, ASGIApp], ...]:
        return self._mounts

    def mount_scope(self, scope: RoutingScope) -> None:
        """Mount a routing scope. Mounting the same scope twice is a no-op."""
        with self._lock:
            if any(s is scope for s in self._scopes):
                return
            self._scopes = (*self._scopes, scope)

    def unmount_scope(self, scope: RoutingScope) -> None:
        with self._lock:
            self._scopes = tuple(s for s in self._scopes if s is not scope)

    def mount_app(self, prefix: str, app: ASGIApp) -> None:
        """Mount an ASGI app at ``prefix``; it receives every path below it."""
        prefix = "/" + prefix.strip("/")
        with self._lock:
            self._mounts = (*((p, a) for p, a in self._mounts if p != prefix), (prefix, app))
            self._app = None

    def serve_static(self, directory: str | Path, prefix: str = "") -> None:
        """Serve files from ``directory`` under ``prefix``, falling through on miss."""
        with self._lock:
            options = {"directory": Path(directory), "prefix": prefix}
            if options in self._static:
                return
            self._static.append(options)
            self._app = None

    def add_middleware(self, middleware_class: type[BaseMiddleware], **options: Any) -> None:
        """Add a middleware inside the errors/logging layers, in call order."""
        with self._lock:
            self._user_middleware.append((middleware_class, options))
            self._app = None

    def set_middleware(
        self,
        middleware: Mapping[str, Any] | str | list[str] | None,
        middleware_options: Mapping[str, Any] | None = None,
    ) -> None:
        """Replace the registry middleware configuration."""
        with self._lock:
            self.middleware = middleware
            self.middleware_options = middleware_options
            self._app = None

    def _build(self) -> ASGIApp:
        app: ASGIApp = Dispatcher(self)
        for options in reversed(self._static):
            app = StaticFilesMiddleware(app, **options)
        for middleware_class, options in reversed(self._user_middleware):
            app = middleware_class(app, **options)
        return middleware_chain(self.middleware, app, self.middleware_options)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI entry point."""
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return

        app = self._app
        if app is None:
            with self._lock:
                if self._app is None:
                    self._app = self._build()
                app = self._app
        await app(scope, receive, send)

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        """Minimal lifespan answer when the engine is served directly."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Listener --

    @property
    def listening(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> int | None:
        """Actual bound port once started (useful with port=0)."""
        return _bound_port(self._server)

    def listen(
        self,
        app: ASGIApp | None = None,
        port: int | str | None = None,
        host: str = DEFAULT_HOST,
        on_ready: Callable[[], Any] | None = None,
    ) -> None:
        """Start accepting connections in a background thread.

        Returns once the socket is bound; ``on_ready`` is called just before.

        Args:
            app: ASGI app handed to uvicorn. Defaults to the engine itself.
            port: Listen port. None means DEFAULT_PORT; 0 picks a free port.
            host: Bind address.
            on_ready: Called once after the bind.

        Raises:
            RuntimeError: If the engine is already listening.
            OSError: If the listener stopped before accepting connections
                (address in use, failed lifespan startup).
        """
        with self._lock:
            if self._server is not None:
                raise RuntimeError("Engine is already listening")
            config = uvicorn.Config(
                app if app is not None else self,
                host=host,
                port=DEFAULT_PORT if port is None else int(port),
                log_config=None,
            )
            server = uvicorn.Server(config)
            thread = threading.Thread(
                target=server.run, name="asgi-service-listener", daemon=True
            )
            self._server = server
            self._thread = thread

        thread.start()
        while not server.started:
            if not thread.is_alive() or server.should_exit:
                thread.join(5.0)
                self._discard(server)
                raise OSError(f"Could not listen on {config.host}:{config.port}")
            thread.join(0.01)

        self.logger.info(f"Listening on {config.host}:{_bound_port(server)}")
        if on_ready is not None:
            on_ready()

    def _discard(self, server: uvicorn.Server) -> None:
        with self._lock:
            if self._server is server:
                self._server = None
                self._thread = None

    def wait(self) -> None:
        """Block until the listener thread exits. Interruptible with Ctrl-C."""
        thread = self._thread
        while thread is not None and thread.is_alive():
            thread.join(0.5)

    def close(self, timeout: float = 5.0) -> None:
        """Stop accepting connections and release the socket. Idempotent."""
        with self._lock:
            server, thread = self._server, self._thread
            self._server = None
            self._thread = None
        if server is None:
            return
        server.should_exit = True
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self.logger.info("Listener closed")

    def __repr__(self) -> str:
        return f"HttpEngine(scopes={len(self._scopes)}, listening={self.listening})"
