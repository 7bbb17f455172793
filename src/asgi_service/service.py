# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Service - configuration-driven entry point around the Application.

Example:
    service = Service(port=8080, swagger_location="docs")
    service.run(lambda: print("ready"))
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .application import Application
from .config import ServiceConfig

__all__ = ["Service"]


class Service:
    """Obtains the shared Application, prepares documentation and runs it.

    Args:
        config: A ready ServiceConfig. Keyword arguments are ignored when
            given.
        **kwargs: ServiceConfig parameters (port, docs_path,
            swagger_location, swagger, host, access_log, debug).
    """

    __slots__ = ("config", "app")

    def __init__(self, config: ServiceConfig | None = None, **kwargs: Any) -> None:
        self.config = config or ServiceConfig(**kwargs)
        self.app = Application.get_instance(self.config)
        if self.app.config is not self.config:
            self.app.configure(self.config)
        if self.config.swagger:
            self.app.prepare_documentation(
                self.config.docs_path, self.config.swagger_location
            )

    def run(self, callback: Callable[[], Any] | None = None) -> None:
        """Listen on the configured port; ``callback`` runs once ready."""
        self.app.listen(self.config.port, callback)

    def close(self) -> None:
        self.app.close()
