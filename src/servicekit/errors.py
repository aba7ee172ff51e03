"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the service knows how to describe is one of ten error kinds.
They all derive from ServiceError, so callers can catch the whole family
with a single except clause and still branch on the concrete kind.

    ┌─────────────────────────┬────────────┬─────────────┐
    │ Kind                    │ Severity   │ Recoverable │
    ├─────────────────────────┼────────────┼─────────────┤
    │ InvalidInputError       │ WARN       │ no          │
    │ ConfigError             │ WARN       │ no          │
    │ AuthError               │ ERROR      │ no          │
    │ PermissionDeniedError   │ ERROR      │ no          │
    │ NotFoundError           │ INFO       │ no          │
    │ NetworkError            │ ERROR      │ yes         │
    │ DatabaseError           │ ERROR      │ yes         │
    │ IoError                 │ ERROR      │ yes         │
    │ SerializationError      │ CRITICAL   │ no          │
    │ InternalError           │ CRITICAL   │ no          │
    └─────────────────────────┴────────────┴─────────────┘

Severity and recoverability are advisory. Logging uses severity to pick a
log level; nothing in the service retries automatically based on them.

=============================================================================
"""

import logging
from enum import Enum


class ErrorSeverity(Enum):
    """
    Error severity levels.

    The value is the short label used in log lines and reports.
    """
    INFO = "INFO"
    WARNING = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def __str__(self) -> str:
        return self.value

    @property
    def log_level(self) -> int:
        """The matching level from the logging module."""
        return _LOG_LEVELS[self]


_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


class ServiceError(Exception):
    """
    Base class for all service errors.

    Each concrete kind wraps a human-readable message. The string form
    prefixes the message with the kind's label:

        >>> str(InvalidInputError("Input cannot be empty"))
        'Invalid input: Input cannot be empty'
    """

    label = "Error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"

    def severity(self) -> ErrorSeverity:
        """Get error severity level."""
        if isinstance(self, (InvalidInputError, ConfigError)):
            return ErrorSeverity.WARNING
        if isinstance(self, (AuthError, PermissionDeniedError)):
            return ErrorSeverity.ERROR
        if isinstance(self, NotFoundError):
            return ErrorSeverity.INFO
        if isinstance(self, (NetworkError, DatabaseError, IoError)):
            return ErrorSeverity.ERROR
        return ErrorSeverity.CRITICAL

    def is_recoverable(self) -> bool:
        """Check if the error is recoverable (worth retrying)."""
        return isinstance(self, (NetworkError, DatabaseError, IoError))

    @property
    def log_level(self) -> int:
        """Logging level implied by the severity."""
        return self.severity().log_level

    @classmethod
    def wrap(cls, exc: BaseException) -> "ServiceError":
        """
        Wrap a lower-level exception, keeping it as the cause.

        Usage:
            try:
                content = path.read_text()
            except OSError as e:
                raise IoError.wrap(e)
        """
        error = cls(str(exc))
        error.__cause__ = exc
        return error


class InvalidInputError(ServiceError):
    label = "Invalid input"


class ConfigError(ServiceError):
    label = "Configuration error"


class IoError(ServiceError):
    """Wraps an OSError raised by file or socket operations."""
    label = "IO error"


class SerializationError(ServiceError):
    """Wraps a JSON encoding or decoding failure."""
    label = "Serialization error"


class NetworkError(ServiceError):
    label = "Network error"


class DatabaseError(ServiceError):
    label = "Database error"


class AuthError(ServiceError):
    label = "Authentication error"


class PermissionDeniedError(ServiceError):
    label = "Permission denied"


class NotFoundError(ServiceError):
    label = "Resource not found"


class InternalError(ServiceError):
    label = "Internal server error"


__all__ = [
    "ErrorSeverity",
    "ServiceError",
    "InvalidInputError",
    "ConfigError",
    "IoError",
    "SerializationError",
    "NetworkError",
    "DatabaseError",
    "AuthError",
    "PermissionDeniedError",
    "NotFoundError",
    "InternalError",
]
