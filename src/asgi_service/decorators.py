# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Registration decorators.

The decorators only attach metadata; nothing is registered at import time.
``Application.include()`` reads the metadata back with ``controller_name()``
and ``collect_handlers()`` and performs the explicit registry calls.

Example:
    @controller("users")
    class UsersController:
        @handler("GET", "/users")
        def list_users(self, request):
            return [{"id": 1}]

        @handler("POST", "/users")
        async def create_user(self, request):
            return request.data

    Application.get_instance().include(UsersController)
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from .registry import HandlerBinding, Verb

__all__ = ["controller", "handler", "controller_name", "collect_handlers"]

CONTROLLER_ATTR = "__asgi_controller__"
HANDLERS_ATTR = "__asgi_handlers__"

T = TypeVar("T")


def controller(name: str | None = None) -> Callable[[type[T]], type[T]]:
    """Mark a class as a controller. The name defaults to the class name."""

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, CONTROLLER_ATTR, name or cls.__name__)
        return cls

    return decorator


def handler(verb: Verb | str, path: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Bind a controller method to ``verb`` + ``path``. Stackable."""
    verb = Verb.parse(verb)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        routes = list(getattr(func, HANDLERS_ATTR, ()))
        routes.append((verb, path))
        setattr(func, HANDLERS_ATTR, routes)
        return func

    return decorator


def controller_name(obj: Any) -> str:
    """Controller name of a decorated class or instance."""
    cls = obj if inspect.isclass(obj) else type(obj)
    return getattr(cls, CONTROLLER_ATTR, None) or cls.__name__


def collect_handlers(obj: Any) -> list[HandlerBinding]:
    """Bindings declared with @handler on ``obj``'s class, in definition order."""
    cls = obj if inspect.isclass(obj) else type(obj)
    bindings: list[HandlerBinding] = []
    seen: set[str] = set()
    for klass in reversed(cls.__mro__):
        for attr_name, member in vars(klass).items():
            routes = getattr(member, HANDLERS_ATTR, None)
            if not routes:
                continue
            if attr_name in seen:
                bindings = [b for b in bindings if b.method_name != attr_name]
            seen.add(attr_name)
            bindings.extend(HandlerBinding(verb, path, attr_name) for verb, path in routes)
    return bindings
