# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""ErrorMiddleware - turns request failures into plain-text responses.

    HTTPException           its status, detail as body, its extra headers
    HandlerInvocationError  500
    any other Exception     500

With ``debug=True`` the 500 body carries the formatted traceback, including
the controller error chained under a HandlerInvocationError.

An error raised after ``http.response.start`` went out cannot be answered
any more and is re-raised for the server to handle.
"""

from __future__ import annotations

import traceback
from typing import TYPE_CHECKING, Any

from . import BaseMiddleware
from ..exceptions import HTTPException

if TYPE_CHECKING:
    from ..types import ASGIApp, Message, Receive, Scope, Send

__all__ = ["ErrorMiddleware"]


async def send_text(
    send: Send,
    status: int,
    text: str,
    headers: list[tuple[str, str]] | None = None,
) -> None:
    """Send a complete text/plain response."""
    body = text.encode("utf-8")
    raw_headers = [
        (b"content-type", b"text/plain; charset=utf-8"),
        (b"content-length", str(len(body)).encode()),
    ]
    for name, value in headers or ():
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    await send({"type": "http.response.start", "status": status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": body})


class ErrorMiddleware(BaseMiddleware):
    """Outermost layer of the engine chain; on by default."""

    middleware_name = "errors"
    middleware_order = 100
    middleware_default = True

    __slots__ = ("debug",)

    def __init__(self, app: ASGIApp, debug: bool = False, **kwargs: Any) -> None:
        super().__init__(app, **kwargs)
        self.debug = debug

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = False

        async def watch_start(message: Message) -> None:
            nonlocal started
            started = started or message["type"] == "http.response.start"
            await send(message)

        try:
            await self.app(scope, receive, watch_start)
        except HTTPException as e:
            if started:
                raise
            await send_text(send, e.status_code, e.detail or "", e.headers)
        except Exception:
            if started:
                raise
            text = "Internal Server Error"
            if self.debug:
                text = f"{text}\n\n{traceback.format_exc()}"
            await send_text(send, 500, text)
