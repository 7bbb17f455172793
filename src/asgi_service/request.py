# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""HttpRequest - what a controller method receives.

Created empty by the engine dispatcher and filled by ``await init()``, which
drains the body from ``receive``. After init the request is read-only apart
from ``path_params`` (set by the dispatcher once a route matched) and
``response`` (filled by the endpoint).

    request.method        "POST"
    request.path          "/users/42"
    request.path_params   {"id": "42"}
    request.query         {"page": "2"}          last value wins
    request.headers       {"content-type": ...}  lowercased names
    request.cookies       {"session": "abc"}
    request.body          b'{"name": "Ada"}'
    request.data          {"name": "Ada"}        JSON bodies only (orjson)
    request.id            X-Request-ID or a fresh uuid4

The request being served is published in a ContextVar; helpers called from
a controller can use ``get_current_request()`` instead of threading the
request through.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from http.cookies import CookieError, SimpleCookie
from typing import Any
from urllib.parse import parse_qsl

import orjson

from .exceptions import HTTPBadRequest
from .response import Response
from .types import Receive, Scope, Send

__all__ = ["HttpRequest", "get_current_request", "set_current_request"]

_current_request: ContextVar[HttpRequest | None] = ContextVar("current_request", default=None)


def get_current_request() -> HttpRequest | None:
    """The request being served in this context, or None."""
    return _current_request.get()


def set_current_request(request: HttpRequest | None) -> Any:
    return _current_request.set(request)


def is_json(content_type: str | None) -> bool:
    """True for application/json and any ``+json`` media type."""
    media_type = (content_type or "").partition(";")[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


async def read_body(receive: Receive) -> bytes:
    """Collect ``http.request`` chunks until ``more_body`` is false or disconnect."""
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def parse_cookies(header: str) -> dict[str, str]:
    jar: SimpleCookie = SimpleCookie()
    try:
        jar.load(header)
    except CookieError:
        return {}
    return {name: morsel.value for name, morsel in jar.items()}


class HttpRequest:
    """HTTP request built from an ASGI scope."""

    __slots__ = (
        "_scope",
        "_headers",
        "_cookies",
        "_query",
        "_body",
        "_data",
        "_id",
        "path_params",
        "response",
    )

    def __init__(self) -> None:
        self._scope: Scope = {}
        self._headers: dict[str, str] = {}
        self._cookies: dict[str, str] = {}
        self._query: dict[str, str] = {}
        self._body = b""
        self._data: Any = None
        self._id = ""
        self.path_params: dict[str, str] = {}
        self.response = Response(request=self)

    async def init(self, scope: Scope, receive: Receive, send: Send | None = None) -> None:
        """Parse the scope and read the body.

        Raises:
            HTTPBadRequest: If a JSON body does not parse.
        """
        self._scope = scope
        self._headers = {
            name.decode("latin-1").lower(): value.decode("latin-1")
            for name, value in scope.get("headers", [])
        }
        self._cookies = parse_cookies(self._headers.get("cookie", ""))
        self._query = dict(
            parse_qsl(scope.get("query_string", b"").decode("latin-1"), keep_blank_values=True)
        )
        self._id = self._headers.get("x-request-id") or str(uuid.uuid4())

        self._body = await read_body(receive)
        if self._body and is_json(self.content_type):
            try:
                self._data = orjson.loads(self._body)
            except orjson.JSONDecodeError as e:
                raise HTTPBadRequest(f"Invalid JSON body: {e}") from e

    @property
    def id(self) -> str:
        return self._id

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def method(self) -> str:
        return str(self._scope.get("method", "GET")).upper()

    @property
    def path(self) -> str:
        return str(self._scope.get("path", "/"))

    @property
    def headers(self) -> dict[str, str]:
        return self._headers

    @property
    def content_type(self) -> str | None:
        return self._headers.get("content-type")

    @property
    def cookies(self) -> dict[str, str]:
        return self._cookies

    @property
    def query(self) -> dict[str, str]:
        return self._query

    @property
    def body(self) -> bytes:
        return self._body

    @property
    def data(self) -> Any:
        """Decoded JSON body; None when the body is empty or not JSON."""
        return self._data

    @property
    def client(self) -> tuple[str, int] | None:
        client = self._scope.get("client")
        return (client[0], client[1]) if client else None

    def __repr__(self) -> str:
        return f"HttpRequest(id={self._id!r}, method={self.method!r}, path={self.path!r})"
