"""Unit tests for the client error taxonomy."""

from __future__ import annotations

import asyncio

import pytest

from talosdeck.clients.errors import (
    ClientConnectionError,
    NotFoundError,
    PermissionDeniedError,
    classify_error,
    error_kind_for,
)
from talosdeck.constants.enums import ErrorKind


@pytest.mark.unit
@pytest.mark.fast
class TestErrorKindFor:
    """Tests for mapping exceptions onto ErrorKind."""

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (NotFoundError("gone"), ErrorKind.NOT_FOUND),
            (PermissionDeniedError("no"), ErrorKind.PERMISSION_DENIED),
            (ClientConnectionError("down"), ErrorKind.CONNECTION_ERROR),
            (asyncio.TimeoutError(), ErrorKind.TIMEOUT),
            (TimeoutError(), ErrorKind.TIMEOUT),
            (FileNotFoundError("x"), ErrorKind.NOT_FOUND),
            (PermissionError("x"), ErrorKind.PERMISSION_DENIED),
            (ConnectionRefusedError("x"), ErrorKind.CONNECTION_ERROR),
            (OSError("x"), ErrorKind.CONNECTION_ERROR),
            (ValueError("x"), ErrorKind.INTERNAL),
        ],
    )
    def test_mapping(self, error: BaseException, kind: ErrorKind) -> None:
        """Test each exception maps to its taxonomy kind."""
        assert error_kind_for(error) == kind


@pytest.mark.unit
@pytest.mark.fast
class TestClassifyError:
    """Tests for classify_error."""

    def test_message_and_source(self) -> None:
        """Test the ErrorInfo carries message and source."""
        info = classify_error(NotFoundError("no such file"), "file:/x")
        assert info.kind == ErrorKind.NOT_FOUND
        assert info.message == "no such file"
        assert info.describe() == "file:/x: Not found - no such file"

    def test_empty_message_uses_type_name(self) -> None:
        """Test exceptions without a message fall back to the type name."""
        info = classify_error(asyncio.TimeoutError())
        assert info.message == "TimeoutError"
        assert info.label == "Timed out"
