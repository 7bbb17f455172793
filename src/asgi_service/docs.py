# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""SwaggerUI - API documentation page.

The documentation surface is deliberately static: the page loads the API
descriptor from a fixed URL (``/swagger.json``), which is expected to be a
file in the documentation asset directory served at the site root. Nothing
is generated from the registered routes.

Mounted by Application.prepare_documentation():
    engine.serve_static("public")              # /swagger.json and friends
    engine.mount_app("/docs", SwaggerUI())     # the UI page
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .response import Response

if TYPE_CHECKING:
    from .types import Receive, Scope, Send

__all__ = ["SwaggerUI", "DEFAULT_DOCS_PATH", "DEFAULT_DOCS_DIR", "DEFAULT_SWAGGER_URL"]

DEFAULT_DOCS_PATH = "/docs"
DEFAULT_DOCS_DIR = "public"
DEFAULT_SWAGGER_URL = "/swagger.json"

_TEMPLATE = Path(__file__).parent / "resources" / "swagger.html"


class SwaggerUI:
    """ASGI app answering the Swagger UI page at its mount point."""

    __slots__ = ("mount_path", "swagger_url", "_html")

    def __init__(
        self, mount_path: str = DEFAULT_DOCS_PATH, swagger_url: str = DEFAULT_SWAGGER_URL
    ) -> None:
        self.mount_path = "/" + mount_path.strip("/")
        self.swagger_url = swagger_url
        self._html = _TEMPLATE.read_text().replace("/_swagger_json", swagger_url)

    @property
    def html(self) -> str:
        return self._html

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        path = scope.get("path", "/").rstrip("/") or "/"
        if path != self.mount_path.rstrip("/") and path != self.mount_path + "/index.html":
            response = Response("Not found", status_code=404, media_type="text/plain")
        elif scope.get("method", "GET") not in ("GET", "HEAD"):
            response = Response(
                "Method not allowed",
                status_code=405,
                headers={"Allow": "GET, HEAD"},
                media_type="text/plain",
            )
        else:
            response = Response(self._html, media_type="text/html")
        await response(scope, receive, send)

    def __repr__(self) -> str:
        return f"SwaggerUI(mount_path={self.mount_path!r}, swagger_url={self.swagger_url!r})"
