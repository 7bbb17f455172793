# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Dispatcher - Routes ASGI requests to endpoints of mounted routing scopes.

The Dispatcher is the innermost layer of the engine's middleware chain. It:
1. Hands the request to a mounted sub-application if its prefix matches
2. Creates an HttpRequest from the ASGI scope and reads the body
3. Resolves the route across the mounted RoutingScopes, in mount order
4. Calls the endpoint, which fills request.response
5. Sends the ASGI response

Request flow:
    scope → mounts (prefix match) → sub-app
          → HttpRequest.init()
          → scope.resolve(method, path) for each mounted RoutingScope
          → endpoint(request)
          → request.response(scope, receive, send)

Error mapping:
    - no template matches the path → HTTPNotFound (404)
    - a template matches but not for this method → HTTPMethodNotAllowed (405)
    Both are raised and turned into responses by ErrorMiddleware.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..exceptions import HTTPMethodNotAllowed, HTTPNotFound
from ..request import HttpRequest, set_current_request

if TYPE_CHECKING:
    from .engine import HttpEngine
    from ..types import Receive, Scope, Send

__all__ = ["Dispatcher"]


class Dispatcher:
    """Routes ASGI requests to endpoints bound in the engine's routing scopes."""

    __slots__ = ("engine",)

    def __init__(self, engine: HttpEngine) -> None:
        self.engine = engine

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI interface - dispatch request to the matching endpoint."""
        if scope["type"] != "http":
            return

        path = scope.get("path", "/")
        for prefix, app in self.engine.mounts:
            if path == prefix or path.startswith(prefix.rstrip("/") + "/"):
                await app(scope, receive, send)
                return

        request = HttpRequest()
        await request.init(scope, receive, send)
        set_current_request(request)

        try:
            allowed: set[str] = set()
            for routing_scope in self.engine.scopes:
                route, params, scope_allowed = routing_scope.resolve(request.method, path)
                if route is not None:
                    request.path_params = params
                    await route.endpoint(request)
                    await request.response(scope, receive, send)
                    return
                allowed |= scope_allowed

            if allowed:
                raise HTTPMethodNotAllowed(allowed)
            raise HTTPNotFound(f"Cannot {request.method} {path}")
        finally:
            set_current_request(None)
