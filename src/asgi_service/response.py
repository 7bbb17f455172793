# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
HTTP Response.

Every HttpRequest owns an empty Response. After the controller method
returns, its endpoint stores the value with ``set_result()`` and the engine
dispatcher sends the response::

    request.response.set_result({"id": 1})
    await request.response(scope, receive, send)

Result encoding (first match wins):

    ===================  ==========================  ============================
    result               body                        default media type
    ===================  ==========================  ============================
    dict / list / tuple  orjson                      application/json
    str                  utf-8                       text/plain
    bytes                as is                       application/octet-stream
    Path                 file content                guessed from the suffix
    None                 empty                       text/plain
    anything else        orjson, or str() if orjson  application/json, text/plain
                         can't serialize it
    ===================  ==========================  ============================

A media type set on the response, or ``metadata["mime_type"]``, overrides
the default. Text media types get ``; charset=utf-8``.
HEAD requests get the full headers, Content-Length included, and no body.
"""

from __future__ import annotations

import mimetypes
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import orjson

from .types import Receive, Scope, Send

__all__ = ["Response", "encode_result"]

CHARSET = "utf-8"

HeadersInput = Mapping[str, str] | list[tuple[str, str]] | None


def encode_result(result: Any) -> tuple[bytes, str]:
    """Body bytes and default media type for a controller result."""
    if isinstance(result, (dict, list, tuple)):
        return orjson.dumps(result), "application/json"
    if isinstance(result, str):
        return result.encode(CHARSET), "text/plain"
    if isinstance(result, bytes):
        return result, "application/octet-stream"
    if isinstance(result, Path):
        guessed = mimetypes.guess_type(result.name)[0]
        return result.read_bytes(), guessed or "application/octet-stream"
    if result is None:
        return b"", "text/plain"
    try:
        return orjson.dumps(result), "application/json"
    except TypeError:
        return str(result).encode(CHARSET), "text/plain"


def _content_type(media_type: str) -> str:
    if media_type.startswith("text/") and "charset" not in media_type:
        return f"{media_type}; charset={CHARSET}"
    return media_type


class Response:
    """HTTP response, usable as an ASGI app.

    Attributes:
        body: Encoded body.
        status_code: HTTP status, 200 unless given.
        request: Owning HttpRequest, None for standalone responses.
    """

    __slots__ = ("body", "status_code", "request", "_media_type", "_headers")

    def __init__(
        self,
        content: bytes | str | None = None,
        status_code: int = 200,
        headers: HeadersInput = None,
        media_type: str | None = None,
        request: Any = None,
    ) -> None:
        self.request = request
        self.status_code = status_code
        self._media_type = media_type
        if headers is None:
            self._headers: list[tuple[str, str]] = []
        elif isinstance(headers, Mapping):
            self._headers = list(headers.items())
        else:
            self._headers = list(headers)

        if isinstance(content, str):
            content = content.encode(CHARSET)
        self.body = content or b""
        self._sync_content_headers(replace_type=False)

    @property
    def media_type(self) -> str | None:
        return self._media_type

    @property
    def headers(self) -> list[tuple[str, str]]:
        return list(self._headers)

    def set_header(self, name: str, value: str) -> None:
        """Add a header. Content-Type and Content-Length are managed by set_result."""
        self._headers.append((name, value))

    def set_result(self, result: Any, metadata: Mapping[str, Any] | None = None) -> None:
        """Encode ``result`` as the body and update the content headers."""
        self.body, default_type = encode_result(result)
        if self._media_type is None:
            self._media_type = (metadata or {}).get("mime_type") or default_type
        self._sync_content_headers(replace_type=True)

    def _sync_content_headers(self, replace_type: bool) -> None:
        managed = {"content-length"}
        if replace_type:
            managed.add("content-type")
        self._headers = [(k, v) for k, v in self._headers if k.lower() not in managed]
        has_type = any(k.lower() == "content-type" for k, _ in self._headers)
        if self._media_type is not None and not has_type:
            self._headers.append(("content-type", _content_type(self._media_type)))
        self._headers.append(("content-length", str(len(self.body))))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": [
                (k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in self._headers
            ],
        })
        body = b"" if scope.get("method") == "HEAD" else self.body
        await send({"type": "http.response.body", "body": body})

    def __repr__(self) -> str:
        return f"Response(status_code={self.status_code}, media_type={self._media_type!r})"
