"""Tests for RemoteResult and the exception hierarchy."""

from __future__ import annotations

import pytest

from remotely.exceptions import (
    HttpStatusError,
    RemoteError,
    RemotelyError,
    ResponseParseError,
    TransportError,
)
from remotely.exit_codes import (
    EXIT_HTTP_STATUS,
    EXIT_REQUEST_FAILED,
    EXIT_RESPONSE_PARSE_ERROR,
    EXIT_TRANSPORT_ERROR,
)
from remotely.result import FAILURE, RemoteResult


class TestRemoteResult:
    def test_success(self) -> None:
        result = RemoteResult.success({"a": 1})
        assert result.ok
        assert result.unwrap() == {"a": 1}
        assert result.value_or_false() == {"a": 1}

    def test_success_with_falsy_value(self) -> None:
        result = RemoteResult.success(None)
        assert result.ok
        assert result.value_or_false() is None

    def test_failure(self) -> None:
        error = TransportError("down")
        result = RemoteResult.failure(error)
        assert not result.ok
        assert result.value_or_false() is FAILURE is False
        with pytest.raises(TransportError):
            result.unwrap()


class TestExceptions:
    @pytest.mark.parametrize(
        ("exc", "code"),
        [
            (RemoteError("x"), EXIT_REQUEST_FAILED),
            (TransportError("x"), EXIT_TRANSPORT_ERROR),
            (ResponseParseError("x"), EXIT_RESPONSE_PARSE_ERROR),
            (HttpStatusError(500, "Server Error"), EXIT_HTTP_STATUS),
        ],
    )
    def test_exit_codes(self, exc: RemotelyError, code: int) -> None:
        assert exc.exit_code == code
        assert isinstance(exc, RemoteError)

    def test_exit_code_override(self) -> None:
        assert RemotelyError("x", exit_code=42).exit_code == 42

    def test_status_message(self) -> None:
        assert str(HttpStatusError(404, "Not Found")) == "HTTP 404 Not Found"
        assert str(HttpStatusError(599)) == "HTTP 599"
