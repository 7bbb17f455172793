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

"""asgi-service - controller registry and request dispatcher over ASGI.

Main components:
    Application: process-wide singleton owning the engine and the registry
    ControllerRegistry: named controllers, each with its own routing scope
    HandlerBinding: (verb, path, method_name) handler declaration
    Service: configuration-driven entry point (docs + listen)
    HttpEngine: ASGI engine served by uvicorn

Decorators:
    controller: mark a class as a named controller
    handler: bind a method to a verb and a path

Usage:
    from asgi_service import Application, controller, handler

    @controller("hello")
    class Hello:
        @handler("GET", "/hello")
        def greet(self, request):
            return {"hello": request.query.get("name", "world")}

    app = Application.get_instance()
    app.include(Hello)
    app.serve(8000)
"""

__version__ = "0.1.0"

from .application import Application
from .config import ServiceConfig
from .decorators import collect_handlers, controller, controller_name, handler
from .docs import SwaggerUI
from .engine import HttpEngine, RoutingScope
from .exceptions import (
    ControllerNotFoundError,
    DuplicateControllerError,
    HandlerInvocationError,
    HTTPBadRequest,
    HTTPException,
    HTTPMethodNotAllowed,
    HTTPNotFound,
    InvalidHandlerError,
    ServiceError,
)
from .lifespan import ServiceLifespan
from .middleware import BaseMiddleware
from .registry import ControllerEntry, ControllerRegistry, HandlerBinding, Verb
from .request import HttpRequest, get_current_request
from .response import Response
from .service import Service
from .types import ASGIApp, Message, Receive, Scope, Send

__all__ = [
    "__version__",
    "Application",
    "Service",
    "ServiceConfig",
    "ControllerRegistry",
    "ControllerEntry",
    "HandlerBinding",
    "Verb",
    "controller",
    "handler",
    "controller_name",
    "collect_handlers",
    "HttpEngine",
    "RoutingScope",
    "SwaggerUI",
    "ServiceLifespan",
    "BaseMiddleware",
    "HttpRequest",
    "get_current_request",
    "Response",
    "ServiceError",
    "DuplicateControllerError",
    "ControllerNotFoundError",
    "InvalidHandlerError",
    "HandlerInvocationError",
    "HTTPException",
    "HTTPBadRequest",
    "HTTPNotFound",
    "HTTPMethodNotAllowed",
    "ASGIApp",
    "Scope",
    "Message",
    "Receive",
    "Send",
]
