# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exception classes for asgi-service.

Two families live here:

1. Registry and dispatch errors (ServiceError subclasses). Raised by the
   controller registry and by route endpoints.
2. HTTP errors (HTTPException subclasses). Raised anywhere in the request
   cycle and converted to a response by ErrorMiddleware.

Registry errors
---------------
DuplicateControllerError
    A controller name is registered twice. Raised synchronously by
    ``register_controller``; the registry is left exactly as it was.

ControllerNotFoundError
    ``attach_handlers`` was called for a name that was never registered.

InvalidHandlerError
    A handler declaration names a method the controller instance does not
    expose (or that is not callable). Detected at attach time, not at the
    first request.

HandlerInvocationError
    A controller method raised while serving a request. The original error
    is chained as ``__cause__``. ErrorMiddleware answers with a 500; the
    request is not retried and nothing else is affected.

Example:
    >>> try:
    ...     registry.register_controller("users", UsersController())
    ... except DuplicateControllerError as e:
    ...     print(e.name)
    users
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .registry import HandlerBinding

__all__ = [
    "ServiceError",
    "DuplicateControllerError",
    "ControllerNotFoundError",
    "InvalidHandlerError",
    "HandlerInvocationError",
    "HTTPException",
    "HTTPBadRequest",
    "HTTPNotFound",
    "HTTPMethodNotAllowed",
]


class ServiceError(Exception):
    """Base for registry and dispatch errors."""


class DuplicateControllerError(ServiceError):
    """A controller with the same name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Controller '{name}' is already registered")

    def __repr__(self) -> str:
        return f"DuplicateControllerError(name={self.name!r})"


class ControllerNotFoundError(ServiceError):
    """No controller is registered under the given name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Controller '{name}' not found")

    def __repr__(self) -> str:
        return f"ControllerNotFoundError(name={self.name!r})"


class InvalidHandlerError(ServiceError):
    """Handler declaration points to a missing or non-callable method."""

    def __init__(self, name: str, binding: HandlerBinding) -> None:
        self.name = name
        self.binding = binding
        super().__init__(
            f"Controller '{name}' has no callable '{binding.method_name}' "
            f"for {binding.verb.value} {binding.path}"
        )


class HandlerInvocationError(ServiceError):
    """A controller method failed while serving a request.

    Attributes:
        name: Controller name.
        binding: The HandlerBinding whose method failed.
        error: The original exception (also available as __cause__).
    """

    def __init__(self, name: str, binding: HandlerBinding, error: BaseException) -> None:
        self.name = name
        self.binding = binding
        self.error = error
        super().__init__(
            f"{binding.verb.value} {binding.path} -> {name}.{binding.method_name} "
            f"failed: {error!r}"
        )


class HTTPException(Exception):
    """
    HTTP exception with status code and detail.

    Raise this in handlers to return an HTTP error response.
    ErrorMiddleware catches it and sends the status code, the detail as a
    plain-text body and any extra headers.

    Attributes:
        status_code: HTTP status code (expected 4xx or 5xx, not validated)
        detail: Error detail message
        headers: Response headers as list of tuples (supports duplicate names)

    Example:
        >>> raise HTTPException(404, detail="User not found")
        >>> raise HTTPException(401, headers={"WWW-Authenticate": "Bearer"})
    """

    def __init__(
        self,
        status_code: int,
        detail: str = "",
        headers: dict[str, str] | list[tuple[str, str]] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        # Normalize headers to list[tuple[str, str]] for consistent internal format
        if headers is None:
            self.headers: list[tuple[str, str]] | None = None
        elif isinstance(headers, dict):
            self.headers = list(headers.items())
        else:
            self.headers = list(headers)
        super().__init__(detail)

    def __repr__(self) -> str:
        """Return detailed string representation."""
        return f"HTTPException(status_code={self.status_code}, detail={self.detail!r})"


class HTTPBadRequest(HTTPException):
    """HTTP 400 Bad Request exception."""

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(400, detail=detail)


class HTTPNotFound(HTTPException):
    """HTTP 404 Not Found exception."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(404, detail=detail)


class HTTPMethodNotAllowed(HTTPException):
    """HTTP 405 Method Not Allowed. Carries the Allow header."""

    def __init__(self, allowed: set[str] | frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        self.allowed = frozenset(allowed)
        super().__init__(
            405,
            detail=detail or f"Method not allowed. Allowed methods: {allow_value}",
            headers={"Allow": allow_value},
        )
