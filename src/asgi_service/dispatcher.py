# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Handler dispatch - turns a controller method into a route endpoint.

``make_endpoint`` captures the bound controller method when the handler is
attached. At request time the endpoint:

1. calls the method with the HttpRequest (sync or async, via smartasync)
2. awaits the result if the method returned an awaitable
3. stores the result in ``request.response`` with ``set_result()``

Failures:
    - HTTPException raised by the method passes through unchanged, so
      controllers can answer 4xx/5xx on purpose.
    - Any other exception is wrapped in HandlerInvocationError with the
      original error chained. ErrorMiddleware turns it into a 500.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from smartasync import smartasync

from .exceptions import HandlerInvocationError, HTTPException

if TYPE_CHECKING:
    from .registry import HandlerBinding
    from .request import HttpRequest
    from .types import Endpoint

__all__ = ["make_endpoint"]


def make_endpoint(name: str, method: Callable[..., Any], binding: HandlerBinding) -> Endpoint:
    """Build the engine endpoint for ``binding`` on controller ``name``."""
    call = smartasync(method)

    async def endpoint(request: HttpRequest) -> None:
        try:
            result = await call(request)
            if inspect.isawaitable(result):
                result = await result
        except HTTPException:
            raise
        except Exception as e:
            raise HandlerInvocationError(name, binding, e) from e
        request.response.set_result(result)

    endpoint.__name__ = f"{name}.{binding.method_name}"
    return endpoint
