"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

Every connection gets exactly one response, always in this shape:

    HTTP/1.1 200 OK\r\n                      ◄── status line
    Content-Type: application/json\r\n
    Content-Length: 27\r\n                   ◄── computed from the body
    Connection: close\r\n                    ◄── one exchange per connection
    \r\n
    {"status":"healthy",...}                 ◄── body

Extra headers (Retry-After on 429) go between Content-Length and
Connection.

=============================================================================
THE BUILDER
=============================================================================

    response = (ResponseBuilder()
        .status(HTTPStatus.BAD_REQUEST)
        .json({"error": "...", "status": "error"})
        .build())

=============================================================================
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from .status_codes import HTTPStatus


HTML = "text/html"
JSON = "application/json"
TEXT = "text/plain"


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized onto the socket.
    """

    status: HTTPStatus = HTTPStatus.OK
    content_type: str = HTML
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 200 OK" """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set an extra header. Returns self for chaining."""
        self.headers[name] = value
        return self

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8")

    def to_bytes(self) -> bytes:
        """Serialize to the wire format shown in the module docstring."""
        lines = [
            self.status_line,
            f"Content-Type: {self.content_type}",
            f"Content-Length: {len(self.body)}",
        ]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")
        lines.append("Connection: close")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """Fluent builder for HTTPResponse."""

    def __init__(self):
        self._status = HTTPStatus.OK
        self._content_type = HTML
        self._body = b""
        self._headers: Dict[str, str] = {}

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def body(self, body: Union[str, bytes], content_type: str = TEXT) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self._content_type = content_type
        return self

    def html(self, html: str) -> "ResponseBuilder":
        return self.body(html, HTML)

    def json(self, data: Any) -> "ResponseBuilder":
        """
        Set a JSON body.

        Serialized compactly; values are escaped properly, so messages
        containing quotes cannot break the document.
        """
        return self.body(json.dumps(data, separators=(",", ":")), JSON)

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            content_type=self._content_type,
            body=self._body,
            headers=dict(self._headers),
        )


def create_response(
    status: HTTPStatus,
    content_type: str,
    body: Union[str, bytes],
) -> HTTPResponse:
    """Shortcut for the common status + content type + body case."""
    return ResponseBuilder().status(status).body(body, content_type).build()


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """JSON error body: {"error": message, "status": "error"}."""
    return (ResponseBuilder()
        .status(status)
        .json({"error": message, "status": "error"})
        .build())


NOT_FOUND_PAGE = "<h1>404 Not Found</h1><p>The requested resource was not found.</p>"


def not_found() -> HTTPResponse:
    """The static 404 page served for any unmatched route."""
    return create_response(HTTPStatus.NOT_FOUND, HTML, NOT_FOUND_PAGE)
