# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Engine package - the HTTP layer controllers are mounted into.

Contains:
    - HttpEngine: ASGI app, static files, middleware chain, uvicorn listener
    - RoutingScope: per-controller route table
    - Dispatcher: resolves requests across mounted scopes
"""

from .dispatcher import Dispatcher
from .engine import DEFAULT_HOST, DEFAULT_PORT, HttpEngine
from .routing import Route, RoutingScope

__all__ = ["HttpEngine", "RoutingScope", "Route", "Dispatcher", "DEFAULT_HOST", "DEFAULT_PORT"]
