# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""ServiceLifespan - ASGI lifespan protocol for the Application.

Controllers may define ``on_startup()`` and ``on_shutdown()``, sync or
async. On ``lifespan.startup`` every registered controller that has the hook
is started in registration order; on ``lifespan.shutdown`` they are stopped
in reverse order.

A failing startup hook aborts startup and answers
``lifespan.startup.failed`` with the error message, so the server does not
start. A failing shutdown hook is logged and the remaining controllers are
still stopped.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .application import Application
    from .registry import ControllerEntry
    from .types import Receive, Scope, Send

__all__ = ["ServiceLifespan"]


class ServiceLifespan:
    """Runs controller startup/shutdown hooks for one Application."""

    __slots__ = ("application", "logger", "_started")

    def __init__(self, application: Application) -> None:
        self.application = application
        self.logger = logging.getLogger("asgi_service.lifespan")
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as e:
                    self.logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(e)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Call ``on_startup`` on each controller; the first error propagates."""
        for entry in self.application.registry:
            await self._run_hook(entry, "on_startup")
        self._started = True
        self.logger.info(f"Started {len(self.application.registry)} controller(s)")

    async def shutdown(self) -> None:
        """Call ``on_shutdown`` on each controller in reverse order, logging errors."""
        for entry in reversed(list(self.application.registry)):
            try:
                await self._run_hook(entry, "on_shutdown")
            except Exception:
                self.logger.exception(f"Error stopping controller '{entry.name}'")
        self._started = False
        self.logger.info("Stopped")

    async def _run_hook(self, entry: ControllerEntry, hook_name: str) -> None:
        hook = getattr(entry.instance, hook_name, None)
        if not callable(hook):
            return
        self.logger.debug(f"{hook_name} '{entry.name}'")
        result = hook()
        if inspect.isawaitable(result):
            await result
