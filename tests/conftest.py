# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Shared fixtures: singleton reset and hand-built ASGI scope/receive/send."""

from __future__ import annotations

from typing import Any

import orjson
import pytest

from asgi_service import Application


class MockSend:
    """Capture ASGI send messages for testing."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def start_message(self) -> dict[str, Any]:
        """Get the http.response.start message."""
        return self.messages[0]

    @property
    def status(self) -> int:
        return self.start_message["status"]

    @property
    def headers(self) -> dict[bytes, bytes]:
        return dict(self.start_message["headers"])

    @property
    def body(self) -> bytes:
        """Complete body, concatenated from all body messages."""
        return b"".join(
            m.get("body", b"") for m in self.messages if m["type"] == "http.response.body"
        )

    def json(self) -> Any:
        return orjson.loads(self.body)


def make_scope(
    method: str = "GET",
    path: str = "/",
    query_string: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
    client: tuple[str, int] | None = ("127.0.0.1", 50000),
) -> dict[str, Any]:
    """Create a mock ASGI HTTP scope."""
    return {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query_string,
        "headers": headers or [],
        "scheme": "http",
        "server": ("localhost", 8000),
        "client": client,
        "root_path": "",
    }


def make_receive(body: bytes = b"", chunked: bool = False) -> Any:
    """Create a mock receive callable, optionally splitting the body in chunks."""
    if chunked and body:
        chunk_size = len(body) // 3 or 1
        chunks = [
            {"type": "http.request", "body": body[i : i + chunk_size], "more_body": True}
            for i in range(0, len(body), chunk_size)
        ]
        chunks[-1]["more_body"] = False
    else:
        chunks = [{"type": "http.request", "body": body, "more_body": False}]

    async def receive() -> dict[str, Any]:
        if chunks:
            return chunks.pop(0)
        return {"type": "http.disconnect"}

    return receive


async def call_app(
    app: Any,
    method: str = "GET",
    path: str = "/",
    body: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
    query_string: bytes = b"",
) -> MockSend:
    """Run one HTTP request through an ASGI app and return the captured send."""
    send = MockSend()
    scope = make_scope(method, path, query_string=query_string, headers=headers)
    await app(scope, make_receive(body), send)
    return send


@pytest.fixture(autouse=True)
def reset_application() -> Any:
    """Every test starts and ends without a shared Application."""
    Application.reset_instance()
    yield
    Application.reset_instance()


@pytest.fixture
def send() -> MockSend:
    return MockSend()


@pytest.fixture
def call() -> Any:
    """The ``call_app`` helper as a fixture."""
    return call_app
