# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Controller registry - controller identity, routing scopes and handlers.

The registry maps a controller name to a ControllerEntry holding the
controller instance, its RoutingScope and the list of HandlerBindings
attached so far.

Lifecycle of a controller:
    unregistered → registered (0 handlers) → registered (N handlers)

Only ``reset()`` brings a controller back to unregistered.

Rules:
    - Names are unique. Registering an existing name raises
      DuplicateControllerError and leaves the registry untouched.
    - The RoutingScope is mounted in the engine as soon as the controller is
      registered, even without handlers; later attachments extend it.
    - Handler bindings compare by full (verb, path, method_name) tuple.
      Attaching an equal binding again is a no-op: no second bookkeeping
      record and no second engine route.
    - A different method attached to an already bound (verb, path) is
      recorded, but the first binding keeps answering requests.
    - A failing attach_handlers call attaches nothing: every declaration is
      parsed and its method resolved before the first route is added.

Declarations accepted by ``attach_handlers``:
    HandlerBinding(Verb.GET, "/users", "list_users")
    {"verb": "get", "path": "/users", "method_name": "list_users"}
    {"method": "get", "path": "/users", "handler": "list_users"}
    ("GET", "/users", "list_users")

Example:
    registry = ControllerRegistry(engine)
    registry.register_controller("users", UsersController())
    registry.attach_handlers("users", HandlerBinding(Verb.GET, "/users", "list_users"))
    len(registry.get("users").handlers)   # 1
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from .dispatcher import make_endpoint
from .engine.routing import RoutingScope, normalize_path
from .exceptions import ControllerNotFoundError, DuplicateControllerError, InvalidHandlerError

if TYPE_CHECKING:
    from .engine import HttpEngine

__all__ = [
    "Verb",
    "HandlerBinding",
    "ControllerEntry",
    "ControllerRegistry",
    "HandlerDeclaration",
]

logger = logging.getLogger("asgi_service")


class Verb(str, Enum):
    """HTTP verbs a handler can be bound to."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: Verb | str) -> Verb:
        """Case-insensitive conversion: "get", "GET" and Verb.GET are equal."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(
                f"Unsupported verb {value!r}; expected one of GET, POST, PUT, DELETE"
            ) from None


@dataclass(frozen=True, slots=True)
class HandlerBinding:
    """A (verb, path, method_name) triple. Immutable, compared by value."""

    verb: Verb
    path: str
    method_name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "verb", Verb.parse(self.verb))
        object.__setattr__(self, "path", normalize_path(self.path))
        if not self.method_name:
            raise ValueError("Handler declaration needs a method name")

    @classmethod
    def from_declaration(cls, declaration: HandlerDeclaration) -> HandlerBinding:
        """Build a binding from any accepted declaration form."""
        if isinstance(declaration, HandlerBinding):
            return declaration
        if isinstance(declaration, Mapping):
            verb = declaration.get("verb", declaration.get("method"))
            method_name = declaration.get("method_name", declaration.get("handler"))
            if verb is None or method_name is None or "path" not in declaration:
                raise ValueError(f"Incomplete handler declaration: {dict(declaration)!r}")
            return cls(verb, declaration["path"], method_name)
        if isinstance(declaration, tuple) and len(declaration) == 3:
            return cls(*declaration)
        raise TypeError(f"Unsupported handler declaration: {declaration!r}")


HandlerDeclaration = Union[HandlerBinding, Mapping[str, Any], "tuple[Any, str, str]"]


@dataclass(slots=True)
class ControllerEntry:
    """Registry record for one controller."""

    name: str
    instance: Any
    scope: RoutingScope
    handlers: list[HandlerBinding] = field(default_factory=list)


class ControllerRegistry:
    """Name → ControllerEntry map wired to an HttpEngine.

    Mutations happen under a lock; they are expected at startup but are safe
    alongside live traffic because routing scopes swap their tables
    copy-on-write.
    """

    __slots__ = ("engine", "_entries", "_lock")

    def __init__(self, engine: HttpEngine) -> None:
        self.engine = engine
        self._entries: dict[str, ControllerEntry] = {}
        self._lock = threading.RLock()

    def register_controller(
        self,
        name: str,
        instance: Any,
        declarations: HandlerDeclaration | Iterable[HandlerDeclaration] | None = None,
    ) -> ControllerEntry:
        """Create the entry and mount a fresh RoutingScope for it.

        ``declarations``, when given, are attached in the same step. They are
        validated before anything is mounted, so a bad one leaves the
        controller unregistered.

        Raises:
            DuplicateControllerError: If ``name`` is already registered.
            InvalidHandlerError: If a declaration names a missing method.
        """
        with self._lock:
            if name in self._entries:
                raise DuplicateControllerError(name)
            entry = ControllerEntry(name=name, instance=instance, scope=RoutingScope(name))
            pending = self._resolve(entry, declarations) if declarations is not None else []
            self.engine.mount_scope(entry.scope)
            self._entries[name] = entry
            logger.debug(f"Controller '{name}' registered")
            self._bind(entry, pending)
        return entry

    def attach_handlers(
        self,
        name: str,
        declarations: HandlerDeclaration | Iterable[HandlerDeclaration],
    ) -> list[HandlerBinding]:
        """Bind one or more handler declarations to controller ``name``.

        Every declaration is parsed and its method resolved before the first
        route is added: a failing call attaches nothing.

        Returns:
            The bindings that were newly attached (already present ones are
            skipped).

        Raises:
            ControllerNotFoundError: If ``name`` is not registered.
            InvalidHandlerError: If a declaration names a missing method.
            ValueError, TypeError: If a declaration is malformed.
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                raise ControllerNotFoundError(name)
            return self._bind(entry, self._resolve(entry, declarations))

    def _resolve(
        self,
        entry: ControllerEntry,
        declarations: HandlerDeclaration | Iterable[HandlerDeclaration],
    ) -> list[tuple[HandlerBinding, Callable[..., Any]]]:
        """Parse declarations and look up their methods. Mutates nothing."""
        pending: list[tuple[HandlerBinding, Callable[..., Any]]] = []
        seen = set(entry.handlers)
        for declaration in _as_declaration_list(declarations):
            binding = HandlerBinding.from_declaration(declaration)
            if binding in seen:
                continue
            method = getattr(entry.instance, binding.method_name, None)
            if method is None or not callable(method):
                raise InvalidHandlerError(entry.name, binding)
            seen.add(binding)
            pending.append((binding, method))
        return pending

    def _bind(
        self,
        entry: ControllerEntry,
        pending: list[tuple[HandlerBinding, Callable[..., Any]]],
    ) -> list[HandlerBinding]:
        for binding, method in pending:
            verb = binding.verb.value
            if entry.scope.has_route(verb, binding.path):
                logger.warning(
                    f"{verb} {binding.path} is already bound in "
                    f"controller '{entry.name}'; '{binding.method_name}' will be shadowed"
                )
            entry.scope.add_route(verb, binding.path, make_endpoint(entry.name, method, binding))
            logger.debug(f"{verb} {binding.path} -> {entry.name}.{binding.method_name}")
        attached = [binding for binding, _ in pending]
        entry.handlers = [*entry.handlers, *attached]
        return attached

    def get(self, name: str) -> ControllerEntry | None:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return list(self._entries)

    def reset(self) -> None:
        """Unmount every scope and forget all controllers."""
        with self._lock:
            for entry in self._entries.values():
                self.engine.unmount_scope(entry.scope)
            self._entries = {}

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ControllerEntry]:
        return iter(list(self._entries.values()))

    def __repr__(self) -> str:
        return f"ControllerRegistry(controllers={self.names()!r})"


def _as_declaration_list(
    declarations: HandlerDeclaration | Iterable[HandlerDeclaration],
) -> list[HandlerDeclaration]:
    """Normalize a single declaration into a one-element list."""
    if isinstance(declarations, (HandlerBinding, Mapping)):
        return [declarations]
    if isinstance(declarations, tuple) and len(declarations) == 3 and isinstance(
        declarations[1], str
    ):
        return [declarations]
    return list(declarations)
