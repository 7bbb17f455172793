# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""LoggingMiddleware - one access-log line per request.

    GET /users?page=2 200 52 - 1.3 ms
    GET /missing 404 - 0.2 ms
    GET /boom ERROR: kaboom - 0.4 ms

HTTPException on its way to ErrorMiddleware is logged at the configured
level with its status. Anything else is logged at ERROR.

Enabled by ``ServiceConfig.access_log`` (on by default).

Options (``logging_middleware``):
    logger_name: Default "asgi_service.access".
    level: Level name for successful requests. Default "INFO".
    include_query: Append the query string to the path. Default True.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from . import BaseMiddleware
from ..exceptions import HTTPException

if TYPE_CHECKING:
    from ..types import ASGIApp, Message, Receive, Scope, Send

__all__ = ["LoggingMiddleware"]


class LoggingMiddleware(BaseMiddleware):
    """Access log for HTTP scopes; other scopes pass through silently."""

    middleware_name = "logging"
    middleware_order = 200

    __slots__ = ("logger", "level", "include_query")

    def __init__(
        self,
        app: ASGIApp,
        logger_name: str = "asgi_service.access",
        level: str = "INFO",
        include_query: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(app, **kwargs)
        self.logger = logging.getLogger(logger_name)
        self.level = logging.getLevelName(level.upper())
        if not isinstance(self.level, int):
            self.level = logging.INFO
        self.include_query = include_query

    def describe(self, scope: Scope) -> str:
        """``METHOD path[?query]`` for the log line."""
        target = scope.get("path", "/")
        query = scope.get("query_string", b"")
        if self.include_query and query:
            target = f"{target}?{query.decode('latin-1')}"
        return f"{scope.get('method', '?')} {target}"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started_at = time.perf_counter()
        status = 0
        size = 0

        async def measure(message: Message) -> None:
            nonlocal status, size
            if message["type"] == "http.response.start":
                status = message.get("status", 0)
            elif message["type"] == "http.response.body":
                size += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, measure)
        except HTTPException as e:
            elapsed = (time.perf_counter() - started_at) * 1000
            self.logger.log(self.level, f"{self.describe(scope)} {e.status_code} - {elapsed:.1f} ms")
            raise
        except Exception as e:
            elapsed = (time.perf_counter() - started_at) * 1000
            self.logger.error(f"{self.describe(scope)} ERROR: {e} - {elapsed:.1f} ms")
            raise

        elapsed = (time.perf_counter() - started_at) * 1000
        self.logger.log(self.level, f"{self.describe(scope)} {status} {size} - {elapsed:.1f} ms")
