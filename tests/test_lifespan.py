# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for ServiceLifespan."""

from __future__ import annotations

from typing import Any

import pytest

from asgi_service import Application
from asgi_service.lifespan import ServiceLifespan

from conftest import MockSend


def make_lifespan_receive(*types: str) -> Any:
    messages = [{"type": t} for t in types]

    async def receive() -> dict[str, Any]:
        return messages.pop(0)

    return receive


class Recorder:
    def __init__(self, name: str, events: list[str]) -> None:
        self.name = name
        self.events = events

    def on_startup(self) -> None:
        self.events.append(f"start {self.name}")

    async def on_shutdown(self) -> None:
        self.events.append(f"stop {self.name}")


class TestServiceLifespan:
    @pytest.mark.asyncio
    async def test_startup_in_order_shutdown_reversed(self) -> None:
        events: list[str] = []
        app = Application.get_instance()
        app.register_controller("a", Recorder("a", events))
        app.register_controller("plain", object())
        app.register_controller("b", Recorder("b", events))

        lifespan = ServiceLifespan(app)
        await lifespan.startup()
        assert lifespan.started
        await lifespan.shutdown()
        assert not lifespan.started

        assert events == ["start a", "start b", "stop b", "stop a"]

    @pytest.mark.asyncio
    async def test_startup_failure_is_reported(self) -> None:
        class Broken:
            def on_startup(self) -> None:
                raise RuntimeError("no database")

        app = Application.get_instance()
        app.register_controller("broken", Broken())

        send = MockSend()
        await ServiceLifespan(app)(
            {"type": "lifespan"}, make_lifespan_receive("lifespan.startup"), send
        )
        assert send.messages == [{"type": "lifespan.startup.failed", "message": "no database"}]

    @pytest.mark.asyncio
    async def test_shutdown_errors_do_not_stop_others(self) -> None:
        events: list[str] = []

        class Broken:
            def on_shutdown(self) -> None:
                raise RuntimeError("stuck")

        app = Application.get_instance()
        app.register_controller("a", Recorder("a", events))
        app.register_controller("broken", Broken())

        send = MockSend()
        await ServiceLifespan(app)(
            {"type": "lifespan"},
            make_lifespan_receive("lifespan.startup", "lifespan.shutdown"),
            send,
        )
        assert events == ["start a", "stop a"]
        assert [m["type"] for m in send.messages] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
