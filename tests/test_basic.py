# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

import asgi_service


def test_version() -> None:
    """Test that version is defined."""
    assert asgi_service.__version__ == "0.1.0"


def test_exports() -> None:
    """Test that main exports are available."""
    for name in asgi_service.__all__:
        assert hasattr(asgi_service, name), name
    assert hasattr(asgi_service, "Application")
    assert hasattr(asgi_service, "HandlerBinding")
    assert hasattr(asgi_service, "Service")
