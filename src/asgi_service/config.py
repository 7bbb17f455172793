# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Service configuration - layered options for Service and the CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from genro_toolbox import SmartOptions  # type: ignore[import-untyped]

from .docs import DEFAULT_DOCS_DIR, DEFAULT_DOCS_PATH
from .engine import DEFAULT_HOST, DEFAULT_PORT
from .middleware import is_on

__all__ = ["ServiceConfig", "DEFAULTS"]

DEFAULTS = {
    "host": DEFAULT_HOST,
    "port": DEFAULT_PORT,
    "docs_path": DEFAULT_DOCS_PATH,
    "swagger_location": DEFAULT_DOCS_DIR,
    "swagger": True,
    "access_log": True,
    "debug": False,
}


def _service_opts_spec(
    host: str,
    port: int,
    docs_path: str,
    swagger_location: str,
    swagger: bool,
    access_log: bool,
    debug: bool,
) -> None:
    """Reference function for SmartOptions type extraction (no defaults)."""


class ServiceConfig:
    """Service options resolved from defaults, environment, argv and caller.

    Config precedence (later overrides earlier):
    1. Built-in DEFAULTS
    2. Environment variables: ASGI_SERVICE_*
    3. Command line arguments (``argv``)
    4. Explicit constructor parameters (None means not given)
    """

    __slots__ = ("_opts",)

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        docs_path: str | None = None,
        swagger_location: str | Path | None = None,
        swagger: bool | None = None,
        access_log: bool | None = None,
        debug: bool | None = None,
        argv: list[str] | None = None,
    ) -> None:
        env_argv_opts = SmartOptions(_service_opts_spec, env="ASGI_SERVICE", argv=argv or [])
        caller_opts = SmartOptions(
            dict(
                host=host,
                port=port,
                docs_path=docs_path,
                swagger_location=str(swagger_location) if swagger_location is not None else None,
                swagger=swagger,
                access_log=access_log,
                debug=debug,
            ),
            ignore_none=True,
        )
        self._opts = SmartOptions(DEFAULTS) + env_argv_opts + caller_opts

    @property
    def host(self) -> str:
        return str(self._opts["host"])

    @property
    def port(self) -> int:
        return int(self._opts["port"])

    @property
    def docs_path(self) -> str:
        return str(self._opts["docs_path"])

    @property
    def swagger_location(self) -> Path:
        """Documentation asset directory, relative to the working directory."""
        return Path(self._opts["swagger_location"])

    @property
    def swagger(self) -> bool:
        return is_on(self._opts["swagger"])

    @property
    def access_log(self) -> bool:
        return is_on(self._opts["access_log"])

    @property
    def debug(self) -> bool:
        return is_on(self._opts["debug"])

    @property
    def middleware(self) -> dict[str, bool]:
        """Registry middleware on/off switches for the engine."""
        return {"logging": self.access_log}

    @property
    def middleware_options(self) -> dict[str, dict[str, Any]]:
        """``{name}_middleware`` option dicts for the engine."""
        return {"errors_middleware": {"debug": self.debug}}

    def as_dict(self) -> dict[str, Any]:
        return {key: getattr(self, key) for key in DEFAULTS}

    def __repr__(self) -> str:
        return f"ServiceConfig({self.as_dict()!r})"
