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
asgi-service CLI entry point.

Usage:
    asgi-service serve myapp.users:UsersController
    asgi-service serve myapp.users:UsersController myapp.orders:OrdersController --port 9000
    asgi-service serve myapp.users:UsersController --no-docs

Each target is ``module:attribute``; the attribute is a @controller class
(instantiated without arguments) or an already built controller instance.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from typing import Any


def load_target(target: str) -> Any:
    """Import ``module:attribute`` and return the attribute."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Invalid target '{target}', expected module:attribute")
    module = importlib.import_module(module_name)
    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


def build_parser() -> argparse.ArgumentParser:
    from . import __version__

    parser = argparse.ArgumentParser(prog="asgi-service")
    parser.add_argument("--version", "-v", action="version", version=f"asgi-service {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Serve one or more controllers")
    serve.add_argument("targets", nargs="+", metavar="module:Controller")
    serve.add_argument("--host", default=None, help="Server host (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Server port (default: 8000)")
    serve.add_argument("--no-docs", action="store_true", help="Disable API documentation")
    serve.add_argument("--docs-path", default=None, help="Swagger UI path (default: /docs)")
    serve.add_argument("--docs-dir", default=None, help="Documentation assets (default: public)")
    serve.add_argument("--debug", action="store_true", help="Tracebacks in 500 responses")
    return parser


def cmd_serve(args: argparse.Namespace) -> int:
    """Include every target and serve until interrupted."""
    from .config import ServiceConfig
    from .exceptions import ServiceError
    from .service import Service

    config = ServiceConfig(
        host=args.host,
        port=args.port,
        docs_path=args.docs_path,
        swagger_location=args.docs_dir,
        swagger=False if args.no_docs else None,
        debug=True if args.debug else None,
    )
    service = Service(config)

    try:
        for target in args.targets:
            service.app.include(load_target(target))
    except (ImportError, AttributeError, ValueError, ServiceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("asgi-service starting...", flush=True)
    print(f"Controllers: {', '.join(service.app.registry.names())}", flush=True)
    print(f"Server: http://{config.host}:{config.port}", flush=True)
    if config.swagger:
        print(f"Docs: http://{config.host}:{config.port}{config.docs_path}", flush=True)
    print(flush=True)

    try:
        service.app.serve(config.port)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print("\nShutdown.")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command != "serve":
        parser.print_help()
        return 0 if args.command is None else 1

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    return cmd_serve(args)


if __name__ == "__main__":
    sys.exit(main())
