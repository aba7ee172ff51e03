"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this service can answer with, and how error kinds map
onto them.

    HTTP/1.1 404 Not Found
             ─── ─────────
              │      │
              │      └── Reason phrase (HTTPStatus.phrase)
              └────────── Status code   (int(HTTPStatus.NOT_FOUND))

=============================================================================
"""

from enum import IntEnum

from ..errors import (
    AuthError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:
        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.OK.phrase
        'OK'
    """

    OK = 200

    BAD_REQUEST = 400            # Malformed input (e.g. empty /process body)
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404              # No route matches
    TOO_MANY_REQUESTS = 429      # Rate limited

    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503    # Unhealthy, or at max_connections

    @property
    def phrase(self) -> str:
        """Get the reason phrase for this status code."""
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.TOO_MANY_REQUESTS: "Too Many Requests",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}


def status_for_error(error: ServiceError) -> HTTPStatus:
    """
    Pick the status code a handler error should be reported with.

    Client-side kinds map to their 4xx code; everything else is a 500.
    """
    if isinstance(error, InvalidInputError):
        return HTTPStatus.BAD_REQUEST
    if isinstance(error, AuthError):
        return HTTPStatus.UNAUTHORIZED
    if isinstance(error, PermissionDeniedError):
        return HTTPStatus.FORBIDDEN
    if isinstance(error, NotFoundError):
        return HTTPStatus.NOT_FOUND
    return HTTPStatus.INTERNAL_SERVER_ERROR
