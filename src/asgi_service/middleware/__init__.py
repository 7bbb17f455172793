# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Engine middleware.

Every BaseMiddleware subclass is recorded in MIDDLEWARE_REGISTRY under its
``middleware_name`` when the class is created. The engine asks
``middleware_chain()`` to wrap its dispatcher with the registered middleware
that are switched on, outermost first by ``middleware_order``:

    order  name      default  switch
    100    errors    on       always on unless {"errors": False}
    200    logging   off      ServiceConfig.access_log
    300    static    off      added per directory by HttpEngine.serve_static

Switches come as a mapping ({"logging": True, "errors": "on"}), a list of
names or a comma-separated string. Per-middleware keyword options are read
from ``{name}_middleware`` keys of the options mapping:

    middleware_chain({"logging": True}, dispatcher,
                     {"logging_middleware": {"level": "DEBUG"}})
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send

MiddlewareSwitches = Mapping[str, Any] | list[str] | str | None

MIDDLEWARE_REGISTRY: dict[str, type[BaseMiddleware]] = {}

_TRUE_VALUES = frozenset({"on", "true", "yes", "1"})


class BaseMiddleware(ABC):
    """ASGI middleware wrapping the next app in the engine chain.

    Class attributes:
        middleware_name: Registry key (default: class name).
        middleware_order: Position in the chain, lower is outer.
        middleware_default: Whether it is on when the switches don't say.
    """

    middleware_name: str = ""
    middleware_order: int = 500
    middleware_default: bool = False

    __slots__ = ("app",)

    def __init__(self, app: ASGIApp, **kwargs: Any) -> None:
        self.app = app

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        name = cls.middleware_name or cls.__name__
        if name in MIDDLEWARE_REGISTRY:
            raise ValueError(f"Middleware name '{name}' already registered")
        cls.middleware_name = name
        MIDDLEWARE_REGISTRY[name] = cls

    @abstractmethod
    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None: ...


def is_on(value: Any) -> bool:
    """Read an on/off switch: bools as they are, strings like "on"/"off"."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return bool(value)


def _switches(config: MiddlewareSwitches) -> dict[str, bool]:
    if config is None:
        return {}
    if isinstance(config, str):
        return {name.strip(): True for name in config.split(",") if name.strip()}
    if isinstance(config, Mapping):
        return {name: is_on(value) for name, value in config.items()}
    return {name: True for name in config}


def enabled_middleware(config: MiddlewareSwitches) -> list[type[BaseMiddleware]]:
    """Registered middleware switched on by ``config``, outermost first."""
    switches = _switches(config)
    enabled = [
        cls
        for name, cls in MIDDLEWARE_REGISTRY.items()
        if switches.get(name, cls.middleware_default)
    ]
    return sorted(enabled, key=lambda cls: cls.middleware_order)


def middleware_chain(
    config: MiddlewareSwitches,
    app: ASGIApp,
    options: Mapping[str, Any] | None = None,
) -> ASGIApp:
    """Wrap ``app`` with the enabled middleware and return the outermost one."""
    for cls in reversed(enabled_middleware(config)):
        kwargs = (options or {}).get(f"{cls.middleware_name}_middleware") or {}
        app = cls(app, **kwargs)
    return app


from .errors import ErrorMiddleware  # noqa: E402
from .logging import LoggingMiddleware  # noqa: E402
from .static import StaticFilesMiddleware  # noqa: E402

__all__ = [
    "BaseMiddleware",
    "MIDDLEWARE_REGISTRY",
    "enabled_middleware",
    "middleware_chain",
    "is_on",
    "ErrorMiddleware",
    "LoggingMiddleware",
    "StaticFilesMiddleware",
]
