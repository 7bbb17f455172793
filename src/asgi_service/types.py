# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""ASGI type definitions for asgi-service.

Scope and Message are plain mutable mappings: ASGI servers add their own
keys, so runtime validation lives in HttpRequest and Response rather than in
TypedDicts.

Endpoint is the callable a RoutingScope stores for each route. It receives
the initialized HttpRequest and fills ``request.response``.
"""

from typing import TYPE_CHECKING, Any, Awaitable, Callable, MutableMapping

if TYPE_CHECKING:
    from .request import HttpRequest

__all__ = ["Scope", "Message", "Receive", "Send", "ASGIApp", "Endpoint"]

# ASGI Scope - connection metadata
Scope = MutableMapping[str, Any]

# ASGI Message - sent/received data
Message = MutableMapping[str, Any]

# ASGI Receive - callable to receive messages
Receive = Callable[[], Awaitable[Message]]

# ASGI Send - callable to send messages
Send = Callable[[Message], Awaitable[None]]

# ASGI Application - the main callable
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

# Route endpoint - bound by the dispatcher, called by the engine
Endpoint = Callable[["HttpRequest"], Awaitable[None]]
