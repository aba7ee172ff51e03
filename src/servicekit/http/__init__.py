"""
=============================================================================
HTTP LAYER
=============================================================================

The minimum of HTTP/1.1 this service speaks:

    request.py       Request line + body extraction from one read buffer
    response.py      Response serialization (always Connection: close)
    router.py        Exact (METHOD, PATH) dispatch with a 404 fallback
    status_codes.py  The status codes in use, and error kind → status

    REQUEST:                          RESPONSE:
    GET /path HTTP/1.1\r\n            HTTP/1.1 200 OK\r\n
    Header: Value\r\n                 Content-Type: ...\r\n
    \r\n                              Content-Length: ...\r\n
    [body]                            Connection: close\r\n
                                      \r\n
                                      [body]

=============================================================================
"""

from .request import HTTPRequest, extract_body, parse_request, parse_request_line
from .response import (
    HTTPResponse,
    ResponseBuilder,
    create_response,
    error_response,
    not_found,
)
from .router import Route, Router
from .status_codes import HTTPStatus, status_for_error

__all__ = [
    "HTTPRequest",
    "parse_request",
    "parse_request_line",
    "extract_body",
    "HTTPResponse",
    "ResponseBuilder",
    "create_response",
    "error_response",
    "not_found",
    "Router",
    "Route",
    "HTTPStatus",
    "status_for_error",
]
