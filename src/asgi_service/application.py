# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Application - process-wide handle on the HTTP engine and controller registry.

Purpose
=======
There is exactly one Application per process. Controllers defined in
independent modules reach it through ``Application.get_instance()`` and
register themselves; the first caller creates it, every later caller (from
any thread) gets the same object.

Definition::

    class Application:
        config: ServiceConfig
        engine: HttpEngine
        registry: ControllerRegistry
        lifespan: ServiceLifespan

        @classmethod get_instance(config=None) -> Application
        @classmethod reset_instance() -> None

        register_controller(name, instance) -> ControllerEntry
        attach_handlers(name, declarations) -> list[HandlerBinding]
        include(obj) -> ControllerEntry
        prepare_documentation(path=None, asset_dir=None) -> None
        add_middleware(cls, **options) -> None
        listen(port=None, on_ready=None) -> None
        serve(port=None) -> None
        close() -> None

Lifecycle
=========
Closing releases the socket but keeps the registry, so the same Application
can listen again. ``reset_instance()`` closes, clears the registry and drops
the singleton; the next ``get_instance()`` builds a fresh one.

Example::

    app = Application.get_instance()
    app.register_controller("users", UsersController())
    app.attach_handlers("users", [("GET", "/users", "list_users")])
    app.prepare_documentation()
    app.listen(8000, on_ready=lambda: print("ready"))
"""

from __future__ import annotations

import inspect
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from .config import ServiceConfig
from .decorators import collect_handlers, controller_name
from .docs import DEFAULT_SWAGGER_URL, SwaggerUI
from .engine import HttpEngine
from .lifespan import ServiceLifespan
from .registry import ControllerRegistry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .middleware import BaseMiddleware
    from .registry import ControllerEntry, HandlerBinding, HandlerDeclaration
    from .types import Receive, Scope, Send

__all__ = ["Application"]


class Application:
    """Process-wide singleton owning the engine and the controller registry."""

    _instance: ClassVar[Application | None] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    __slots__ = ("config", "engine", "registry", "lifespan", "logger")

    def __init__(self, config: ServiceConfig | None = None) -> None:
        """Build a standalone Application. Use get_instance() for the shared one."""
        self.logger = logging.getLogger("asgi_service")
        self.config = config or ServiceConfig()
        self.engine = HttpEngine(
            middleware=self.config.middleware,
            middleware_options=self.config.middleware_options,
        )
        self.registry = ControllerRegistry(self.engine)
        self.lifespan = ServiceLifespan(self)

    # -- Singleton --

    @classmethod
    def get_instance(cls, config: ServiceConfig | None = None) -> Application:
        """Return the process-wide Application, creating it on first call.

        ``config`` is used only by the call that creates the instance; use
        ``configure()`` to change the configuration afterwards.
        """
        instance = cls._instance
        if instance is None:
            with cls._instance_lock:
                instance = cls._instance
                if instance is None:
                    instance = cls(config)
                    cls._instance = instance
        return instance

    @classmethod
    def reset_instance(cls) -> None:
        """Close and forget the shared Application."""
        with cls._instance_lock:
            instance = cls._instance
            cls._instance = None
        if instance is not None:
            instance.close()
            instance.registry.reset()

    def configure(self, config: ServiceConfig) -> None:
        """Replace the configuration and rebuild the engine's middleware setup."""
        self.config = config
        self.engine.set_middleware(config.middleware, config.middleware_options)

    # -- Registration --

    def register_controller(self, name: str, instance: Any) -> ControllerEntry:
        """Register ``instance`` under ``name``. See ControllerRegistry."""
        return self.registry.register_controller(name, instance)

    def attach_handlers(
        self,
        name: str,
        declarations: HandlerDeclaration | Iterable[HandlerDeclaration],
    ) -> list[HandlerBinding]:
        """Attach handler declarations to controller ``name``. See ControllerRegistry."""
        return self.registry.attach_handlers(name, declarations)

    def include(self, obj: Any) -> ControllerEntry:
        """Register a @controller-decorated class or instance with its @handler methods.

        A class is instantiated without arguments. Handlers are validated
        before the controller is registered, so a failure leaves no trace.
        """
        instance = obj() if inspect.isclass(obj) else obj
        name = controller_name(instance)
        return self.registry.register_controller(name, instance, collect_handlers(instance))

    # -- Configuration --

    def prepare_documentation(
        self, path: str | None = None, asset_dir: str | Path | None = None
    ) -> None:
        """Expose documentation assets at the root and the Swagger UI at ``path``.

        Args:
            path: UI mount point. Defaults to config.docs_path ("/docs").
            asset_dir: Static asset directory. Defaults to
                config.swagger_location ("public"). It should hold the
                descriptor served as /swagger.json.
        """
        path = path or self.config.docs_path
        asset_dir = Path(asset_dir) if asset_dir is not None else self.config.swagger_location
        self.engine.serve_static(asset_dir)
        self.engine.mount_app(path, SwaggerUI(path, DEFAULT_SWAGGER_URL))
        self.logger.debug(f"Documentation at {path} (assets: {asset_dir})")

    def add_middleware(self, middleware_class: type[BaseMiddleware], **options: Any) -> None:
        self.engine.add_middleware(middleware_class, **options)

    # -- Listener --

    @property
    def listening(self) -> bool:
        return self.engine.listening

    @property
    def port(self) -> int | None:
        return self.engine.port

    def listen(
        self, port: int | str | None = None, on_ready: Callable[[], Any] | None = None
    ) -> None:
        """Start accepting connections without blocking.

        Args:
            port: Listen port; None means config.port.
            on_ready: Called once after the socket is bound.

        Raises:
            RuntimeError: If already listening.
            OSError: If the socket could not be bound.
        """
        self.engine.listen(
            self,
            port=self.config.port if port is None else port,
            host=self.config.host,
            on_ready=on_ready,
        )

    def serve(self, port: int | str | None = None) -> None:
        """Listen and block until the listener stops or Ctrl-C."""
        self.listen(port)
        try:
            self.engine.wait()
        except KeyboardInterrupt:
            self.logger.info("Interrupted")
        finally:
            self.close()

    def close(self) -> None:
        """Stop listening. Safe to call when not listening."""
        self.engine.close()

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self.lifespan(scope, receive, send)
        else:
            await self.engine(scope, receive, send)

    def __repr__(self) -> str:
        return f"Application(controllers={self.registry.names()!r}, listening={self.listening})"
