# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""StaticFilesMiddleware - files from a directory, ahead of the routes.

HttpEngine.serve_static() wraps the dispatcher with one instance per
directory. GET and HEAD requests whose path maps to a file inside the
directory are answered directly; every other request, and every miss,
reaches the wrapped app unless ``fallthrough`` is off.

Paths resolving outside the directory (``/../secret``) count as misses.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING, Any

from . import BaseMiddleware
from .errors import send_text

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send

__all__ = ["StaticFilesMiddleware"]


class StaticFilesMiddleware(BaseMiddleware):
    """Serve ``directory`` under ``prefix`` (site root by default).

    Args:
        directory: Asset directory. A missing directory only produces misses.
        prefix: URL prefix the files live under.
        html: Answer ``index.html`` for directory paths.
        fallthrough: Pass misses to the wrapped app instead of a 404.
    """

    middleware_name = "static"
    middleware_order = 300

    __slots__ = ("directory", "prefix", "html", "fallthrough")

    def __init__(
        self,
        app: ASGIApp,
        directory: str | Path,
        prefix: str = "",
        html: bool = True,
        fallthrough: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(app, **kwargs)
        self.directory = Path(directory).resolve()
        self.prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""
        self.html = html
        self.fallthrough = fallthrough

    def lookup(self, path: str) -> Path | None:
        """File answering ``path``, or None."""
        if self.prefix:
            if path != self.prefix and not path.startswith(self.prefix + "/"):
                return None
            path = path[len(self.prefix):]
        candidate = (self.directory / path.lstrip("/")).resolve()
        if not candidate.is_relative_to(self.directory):
            return None
        if self.html and candidate.is_dir():
            candidate = candidate / "index.html"
        return candidate if candidate.is_file() else None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        method = scope.get("method", "GET")
        if scope["type"] != "http" or method not in ("GET", "HEAD"):
            await self.app(scope, receive, send)
            return

        found = self.lookup(scope.get("path", "/"))
        if found is not None:
            await self.send_file(send, found, head=method == "HEAD")
        elif self.fallthrough:
            await self.app(scope, receive, send)
        else:
            await send_text(send, 404, "Not Found")

    async def send_file(self, send: Send, file_path: Path, head: bool = False) -> None:
        content = file_path.read_bytes()
        content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        await send({
            "type": "http.response.start",
            "status": 200,
            "headers": [
                (b"content-type", content_type.encode()),
                (b"content-length", str(len(content)).encode()),
            ],
        })
        await send({"type": "http.response.body", "body": b"" if head else content})
