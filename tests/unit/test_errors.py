"""
Unit tests for the error taxonomy.
"""

import json
import logging

import pytest

from servicekit.errors import (
    AuthError,
    ConfigError,
    DatabaseError,
    ErrorSeverity,
    InternalError,
    InvalidInputError,
    IoError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    SerializationError,
    ServiceError,
)
from servicekit.http.status_codes import HTTPStatus, status_for_error


ALL_KINDS = [
    (InvalidInputError, "Invalid input", ErrorSeverity.WARNING, False),
    (ConfigError, "Configuration error", ErrorSeverity.WARNING, False),
    (IoError, "IO error", ErrorSeverity.ERROR, True),
    (SerializationError, "Serialization error", ErrorSeverity.CRITICAL, False),
    (NetworkError, "Network error", ErrorSeverity.ERROR, True),
    (DatabaseError, "Database error", ErrorSeverity.ERROR, True),
    (AuthError, "Authentication error", ErrorSeverity.ERROR, False),
    (PermissionDeniedError, "Permission denied", ErrorSeverity.ERROR, False),
    (NotFoundError, "Resource not found", ErrorSeverity.INFO, False),
    (InternalError, "Internal server error", ErrorSeverity.CRITICAL, False),
]


class TestErrorKinds:
    """Tests for the ten error kinds."""

    @pytest.mark.parametrize("cls,label,severity,recoverable", ALL_KINDS)
    def test_kind_properties(self, cls, label, severity, recoverable):
        """Test message format, severity and recoverability per kind."""
        error = cls("something happened")

        assert isinstance(error, ServiceError)
        assert str(error) == f"{label}: something happened"
        assert error.message == "something happened"
        assert error.severity() is severity
        assert error.is_recoverable() is recoverable

    def test_catch_as_family(self):
        """Test that every kind is caught by ServiceError."""
        with pytest.raises(ServiceError):
            raise NotFoundError("user 42")

    def test_log_level_follows_severity(self):
        """Test severity → logging level mapping."""
        assert NotFoundError("x").log_level == logging.INFO
        assert InvalidInputError("x").log_level == logging.WARNING
        assert NetworkError("x").log_level == logging.ERROR
        assert InternalError("x").log_level == logging.CRITICAL


class TestErrorSeverity:
    """Tests for ErrorSeverity rendering."""

    def test_str(self):
        """Test short labels."""
        assert [str(s) for s in ErrorSeverity] == ["INFO", "WARN", "ERROR", "CRITICAL"]


class TestWrap:
    """Tests for wrapping lower-level exceptions."""

    def test_io_error_wraps_os_error(self):
        """Test that OSError is kept as the cause."""
        cause = FileNotFoundError(2, "No such file or directory")
        error = IoError.wrap(cause)

        assert isinstance(error, IoError)
        assert error.__cause__ is cause
        assert str(error) == f"IO error: {cause}"

    def test_serialization_error_wraps_json_error(self):
        """Test wrapping a JSON decode failure."""
        try:
            json.loads("{not json")
        except json.JSONDecodeError as e:
            error = SerializationError.wrap(e)

        assert error.__cause__ is not None
        assert str(error).startswith("Serialization error: ")
        assert error.severity() is ErrorSeverity.CRITICAL


class TestStatusForError:
    """Tests for error kind → HTTP status."""

    def test_client_errors(self):
        """Test 4xx mappings."""
        assert status_for_error(InvalidInputError("x")) == HTTPStatus.BAD_REQUEST
        assert status_for_error(AuthError("x")) == HTTPStatus.UNAUTHORIZED
        assert status_for_error(PermissionDeniedError("x")) == HTTPStatus.FORBIDDEN
        assert status_for_error(NotFoundError("x")) == HTTPStatus.NOT_FOUND

    def test_everything_else_is_500(self):
        """Test server-side kinds map to 500."""
        for error in (DatabaseError("x"), IoError("x"), InternalError("x")):
            assert status_for_error(error) == HTTPStatus.INTERNAL_SERVER_ERROR
