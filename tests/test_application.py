# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for the Application singleton: lifecycle, registration and dispatch."""

from __future__ import annotations

import socket
import threading
import urllib.request
from pathlib import Path
from typing import Any

import pytest

from asgi_service import Application, controller, handler
from asgi_service.exceptions import DuplicateControllerError, InvalidHandlerError
from asgi_service.registry import HandlerBinding, Verb

from conftest import MockSend, call_app


class TestController:
    __test__ = False

    def __init__(self) -> None:
        self.counter = 0

    def run(self, request: Any) -> dict[str, Any]:
        self.counter += 1
        return {"ok": True, "count": self.counter}

    async def create(self, request: Any) -> Any:
        return {"created": request.data}

    def explode(self, request: Any) -> Any:
        raise RuntimeError("kaboom")

    def show(self, request: Any) -> str:
        return f"item {request.path_params['id']}"


@controller("greeter")
class Greeter:
    @handler("GET", "/greet")
    def greet(self, request: Any) -> dict[str, str]:
        return {"hello": request.query.get("name", "world")}


# =============================================================================
# Singleton
# =============================================================================


class TestSingleton:
    def test_get_instance_returns_same_object(self) -> None:
        a = Application.get_instance()
        b = Application.get_instance()
        assert a is b

    def test_mutations_are_shared(self) -> None:
        Application.get_instance().register_controller("Stub", object())
        assert "Stub" in Application.get_instance().registry

    def test_concurrent_first_calls_share_one_instance(self) -> None:
        barrier = threading.Barrier(16)
        seen: list[Application] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            instance = Application.get_instance()
            with lock:
                seen.append(instance)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(seen) == 16
        assert all(instance is seen[0] for instance in seen)

    def test_reset_instance_gives_fresh_application(self) -> None:
        first = Application.get_instance()
        first.register_controller("Stub", object())
        Application.reset_instance()
        second = Application.get_instance()
        assert second is not first
        assert len(second.registry) == 0

    def test_reset_without_instance(self) -> None:
        Application.reset_instance()
        Application.reset_instance()


# =============================================================================
# Registration and dispatch
# =============================================================================


class TestRegistrationAndDispatch:
    @pytest.mark.asyncio
    async def test_get_test_dispatches_to_controller(self) -> None:
        app = Application.get_instance()
        instance = TestController()
        app.register_controller("test", instance)
        app.attach_handlers("test", HandlerBinding(Verb.GET, "/test", "run"))

        assert len(app.registry.get("test").handlers) == 1
        send = await call_app(app, "GET", "/test")
        assert send.status == 200
        assert send.json() == {"ok": True, "count": 1}
        assert instance.counter == 1

    @pytest.mark.asyncio
    async def test_async_method_with_json_body(self) -> None:
        app = Application.get_instance()
        app.register_controller("test", TestController())
        app.attach_handlers("test", {"verb": "POST", "path": "/items", "method_name": "create"})

        send = await call_app(
            app,
            "POST",
            "/items",
            body=b'{"name": "pen"}',
            headers=[(b"content-type", b"application/json")],
        )
        assert send.status == 200
        assert send.json() == {"created": {"name": "pen"}}

    @pytest.mark.asyncio
    async def test_failing_method_is_500_and_next_request_works(self) -> None:
        app = Application.get_instance()
        app.register_controller("test", TestController())
        app.attach_handlers(
            "test", [("GET", "/explode", "explode"), ("GET", "/test", "run")]
        )

        failed = await call_app(app, "GET", "/explode")
        assert failed.status == 500
        assert failed.body == b"Internal Server Error"

        ok = await call_app(app, "GET", "/test")
        assert ok.status == 200

    @pytest.mark.asyncio
    async def test_path_params(self) -> None:
        app = Application.get_instance()
        app.register_controller("test", TestController())
        app.attach_handlers("test", ("GET", "/items/{id}", "show"))
        send = await call_app(app, "GET", "/items/12")
        assert send.body == b"item 12"

    @pytest.mark.asyncio
    async def test_repeated_attach_keeps_one_route(self) -> None:
        app = Application.get_instance()
        instance = TestController()
        app.register_controller("test", instance)
        for _ in range(3):
            app.attach_handlers("test", ("GET", "/test", "run"))

        entry = app.registry.get("test")
        assert len(entry.handlers) == 1
        assert len(entry.scope) == 1
        send = await call_app(app, "GET", "/test")
        assert send.json()["count"] == 1

    @pytest.mark.asyncio
    async def test_include_decorated_class(self) -> None:
        app = Application.get_instance()
        entry = app.include(Greeter)
        assert entry.name == "greeter"
        assert entry.handlers == [HandlerBinding(Verb.GET, "/greet", "greet")]

        send = await call_app(app, "GET", "/greet", query_string=b"name=Ada")
        assert send.json() == {"hello": "Ada"}

    def test_include_twice_raises(self) -> None:
        app = Application.get_instance()
        app.include(Greeter)
        with pytest.raises(DuplicateControllerError):
            app.include(Greeter())

    def test_include_with_invalid_handler_registers_nothing(self) -> None:
        class Broken(Greeter):
            def __init__(self) -> None:
                self.greet = None

        app = Application.get_instance()
        with pytest.raises(InvalidHandlerError):
            app.include(Broken)
        assert "greeter" not in app.registry
        assert app.engine.scopes == ()
        app.include(Greeter)
        assert "greeter" in app.registry

    @pytest.mark.asyncio
    async def test_unknown_route_is_404(self) -> None:
        app = Application.get_instance()
        send = await call_app(app, "GET", "/nothing")
        assert send.status == 404


# =============================================================================
# Documentation
# =============================================================================


class TestPrepareDocumentation:
    @pytest.mark.asyncio
    async def test_docs_page_and_assets(self, tmp_path: Path) -> None:
        (tmp_path / "swagger.json").write_text('{"openapi": "3.0.3", "paths": {}}')
        app = Application.get_instance()
        app.prepare_documentation("/docs", tmp_path)

        page = await call_app(app, "GET", "/docs")
        assert page.status == 200
        assert page.headers[b"content-type"] == b"text/html; charset=utf-8"
        assert b'url: "/swagger.json"' in page.body

        descriptor = await call_app(app, "GET", "/swagger.json")
        assert descriptor.json() == {"openapi": "3.0.3", "paths": {}}

    @pytest.mark.asyncio
    async def test_routes_still_reachable(self, tmp_path: Path) -> None:
        app = Application.get_instance()
        app.include(Greeter)
        app.prepare_documentation(asset_dir=tmp_path)
        assert (await call_app(app, "GET", "/greet")).status == 200

    @pytest.mark.asyncio
    async def test_custom_path(self, tmp_path: Path) -> None:
        app = Application.get_instance()
        app.prepare_documentation("/api-docs", tmp_path)
        assert (await call_app(app, "GET", "/api-docs/")).status == 200
        assert (await call_app(app, "GET", "/docs")).status == 404


# =============================================================================
# Lifespan routed through the Application
# =============================================================================


class TestApplicationLifespan:
    @pytest.mark.asyncio
    async def test_lifespan_calls_controller_hooks(self) -> None:
        events: list[str] = []

        class Hooked:
            def on_startup(self) -> None:
                events.append("start")

            async def on_shutdown(self) -> None:
                events.append("stop")

        app = Application.get_instance()
        app.register_controller("hooked", Hooked())

        messages = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]

        async def receive() -> dict[str, Any]:
            return messages.pop(0)

        send = MockSend()
        await app({"type": "lifespan"}, receive, send)
        assert events == ["start", "stop"]
        assert send.messages[0]["type"] == "lifespan.startup.complete"


# =============================================================================
# Listener
# =============================================================================


class TestListener:
    def test_close_never_listening(self) -> None:
        app = Application.get_instance()
        app.close()
        app.close()
        assert not app.listening

    def test_listen_calls_on_ready_and_serves(self) -> None:
        app = Application.get_instance()
        app.register_controller("test", TestController())
        app.attach_handlers("test", ("GET", "/test", "run"))

        ready = threading.Event()
        app.listen(0, ready.set)
        try:
            assert ready.wait(10)
            assert app.listening
            port = app.port
            assert port

            with urllib.request.urlopen(f"http://127.0.0.1:{port}/test", timeout=5) as resp:
                assert resp.status == 200
                assert resp.read() == b'{"ok":true,"count":1}'

            with pytest.raises(RuntimeError):
                app.listen(0)
        finally:
            app.close()

        assert not app.listening

    def test_listen_on_busy_port_raises(self) -> None:
        app = Application.get_instance()
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        ready = threading.Event()
        try:
            with pytest.raises(OSError):
                app.listen(blocker.getsockname()[1], ready.set)
        finally:
            blocker.close()

        assert not ready.is_set()
        assert not app.listening
        assert app.port is None

        app.listen(0)
        try:
            assert app.listening
            assert app.port
        finally:
            app.close()
