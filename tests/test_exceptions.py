# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for the exception hierarchy."""

from __future__ import annotations

from asgi_service.exceptions import (
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
from asgi_service.registry import HandlerBinding, Verb


class TestServiceErrors:
    def test_hierarchy(self) -> None:
        for cls in (
            DuplicateControllerError,
            ControllerNotFoundError,
            InvalidHandlerError,
            HandlerInvocationError,
        ):
            assert issubclass(cls, ServiceError)
        assert not issubclass(ServiceError, HTTPException)

    def test_duplicate_message(self) -> None:
        error = DuplicateControllerError("users")
        assert str(error) == "Controller 'users' is already registered"
        assert repr(error) == "DuplicateControllerError(name='users')"

    def test_not_found_message(self) -> None:
        assert str(ControllerNotFoundError("ghost")) == "Controller 'ghost' not found"

    def test_invalid_handler_message(self) -> None:
        binding = HandlerBinding(Verb.GET, "/x", "missing")
        error = InvalidHandlerError("users", binding)
        assert "'missing'" in str(error)
        assert "GET /x" in str(error)

    def test_invocation_keeps_original(self) -> None:
        original = ValueError("bad")
        binding = HandlerBinding(Verb.POST, "/y", "save")
        error = HandlerInvocationError("users", binding, original)
        assert error.error is original
        assert str(error).startswith("POST /y -> users.save failed")


class TestHTTPExceptions:
    def test_headers_dict_normalized(self) -> None:
        error = HTTPException(401, "no", headers={"WWW-Authenticate": "Bearer"})
        assert error.headers == [("WWW-Authenticate", "Bearer")]

    def test_shortcuts(self) -> None:
        assert HTTPBadRequest().status_code == 400
        assert HTTPNotFound().status_code == 404

    def test_method_not_allowed_sets_allow(self) -> None:
        error = HTTPMethodNotAllowed({"POST", "GET"})
        assert error.status_code == 405
        assert error.headers == [("Allow", "GET, POST")]
        assert error.allowed == frozenset({"GET", "POST"})
