# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""RoutingScope - per-controller route table.

Each registered controller owns one RoutingScope. The scope is mounted in
the HttpEngine when the controller is registered, and every attached handler
adds one Route to it.

Path templates:
    Literal segments match exactly. ``{name}`` and ``:name`` segments match
    any single non-empty segment and are returned as path params.

        scope.add_route("GET", "/users/{id}", endpoint)
        scope.resolve("GET", "/users/42")   # (route, {"id": "42"}, {"GET"})

    A trailing slash is ignored on both sides, so "/users/" matches "/users".

Resolution:
    Routes are tried in insertion order and the first match wins. When the
    path matches but the method does not, ``resolve`` reports the methods
    that would have matched so the engine can answer 405.
    HEAD requests match GET routes; the response goes out without a body.

Concurrency:
    The route table is an immutable tuple replaced under a lock on every
    write. Readers take the current tuple without locking.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import Endpoint

__all__ = ["Route", "RoutingScope", "compile_path", "normalize_path"]

_PARAM_RE = re.compile(r"^(?:\{(?P<brace>[A-Za-z_]\w*)\}|:(?P<colon>[A-Za-z_]\w*))$")


def normalize_path(path: str) -> str:
    """Ensure a leading slash and drop the trailing one (except for root)."""
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def compile_path(path: str) -> tuple[tuple[str, bool], ...]:
    """Split a path template into (text, is_param) segments."""
    segments: list[tuple[str, bool]] = []
    for part in normalize_path(path).strip("/").split("/"):
        if not part:
            continue
        m = _PARAM_RE.match(part)
        if m:
            segments.append((m.group("brace") or m.group("colon"), True))
        else:
            segments.append((part, False))
    return tuple(segments)


@dataclass(frozen=True, slots=True)
class Route:
    """A bound route: method + path template -> endpoint."""

    method: str
    path: str
    endpoint: Endpoint
    segments: tuple[tuple[str, bool], ...]

    def match_path(self, parts: list[str]) -> dict[str, str] | None:
        """Return path params if ``parts`` match this template, else None."""
        if len(parts) != len(self.segments):
            return None
        params: dict[str, str] = {}
        for part, (text, is_param) in zip(parts, self.segments):
            if is_param:
                params[text] = part
            elif part != text:
                return None
        return params


class RoutingScope:
    """Ordered, copy-on-write route table for one controller."""

    __slots__ = ("name", "_routes", "_lock")

    def __init__(self, name: str) -> None:
        self.name = name
        self._routes: tuple[Route, ...] = ()
        self._lock = threading.Lock()

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    def add_route(self, method: str, path: str, endpoint: Endpoint) -> Route:
        """Append a route. Earlier routes keep precedence on equal templates."""
        route = Route(
            method=method.upper(),
            path=normalize_path(path),
            endpoint=endpoint,
            segments=compile_path(path),
        )
        with self._lock:
            self._routes = (*self._routes, route)
        return route

    def has_route(self, method: str, path: str) -> bool:
        """True if a route with this method and exact template exists."""
        method = method.upper()
        path = normalize_path(path)
        return any(r.method == method and r.path == path for r in self._routes)

    def resolve(
        self, method: str, path: str
    ) -> tuple[Route | None, dict[str, str], set[str]]:
        """Find the first route matching method and path.

        Returns:
            (route, path_params, allowed) where route is None when nothing
            matched and ``allowed`` holds the methods whose template matched
            the path.
        """
        method = method.upper()
        parts = [p for p in normalize_path(path).strip("/").split("/") if p]
        allowed: set[str] = set()
        for route in self._routes:
            params = route.match_path(parts)
            if params is None:
                continue
            if route.method == method or (method == "HEAD" and route.method == "GET"):
                return route, params, allowed
            allowed.add(route.method)
        return None, {}, allowed

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"RoutingScope(name={self.name!r}, routes={len(self._routes)})"
