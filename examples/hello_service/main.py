#!/usr/bin/env python
# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Hello service: two controllers, one registered with decorators and one by hand.

Run with:
    python main.py
    python main.py --port 9000

Try:
    curl http://127.0.0.1:8000/hello?name=Ada
    curl -X POST http://127.0.0.1:8000/notes -H 'content-type: application/json' -d '{"text": "hi"}'
    curl http://127.0.0.1:8000/notes/0
    open http://127.0.0.1:8000/docs
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from asgi_service import HTTPNotFound, Service, controller, handler


@controller("hello")
class Hello:
    @handler("GET", "/hello")
    def greet(self, request: Any) -> dict[str, str]:
        return {"hello": request.query.get("name", "world")}


class Notes:
    def __init__(self) -> None:
        self.notes: list[str] = []

    def on_startup(self) -> None:
        print("notes ready")

    async def add(self, request: Any) -> dict[str, int]:
        self.notes.append((request.data or {}).get("text", ""))
        return {"id": len(self.notes) - 1}

    def show(self, request: Any) -> dict[str, Any]:
        index = int(request.path_params["id"])
        if index >= len(self.notes):
            raise HTTPNotFound(f"No note {index}")
        return {"id": index, "text": self.notes[index]}


def main() -> int:
    parser = argparse.ArgumentParser(description="Hello service")
    parser.add_argument("--port", "-p", type=int, default=8000, help="Server port")
    args = parser.parse_args()

    service = Service(port=args.port, swagger_location=Path(__file__).parent / "public")
    app = service.app
    app.include(Hello)
    app.register_controller("notes", Notes())
    app.attach_handlers(
        "notes",
        [
            {"method": "post", "path": "/notes", "handler": "add"},
            {"method": "get", "path": "/notes/:id", "handler": "show"},
        ],
    )
    app.serve(service.config.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
