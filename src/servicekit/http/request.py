"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

The service reads one buffer per connection and only needs three things
from it: the method, the path and (for POST /process) the body.

    POST /process HTTP/1.1\r\n        ◄── request line: METHOD PATH ...
    Host: localhost:8080\r\n          ◄── headers (kept for logging)
    Content-Length: 5\r\n
    \r\n                              ◄── first blank line
    hello                             ◄── body = everything after it

=============================================================================
WHAT THIS PARSER DOES NOT DO
=============================================================================

- No Content-Length enforcement: the body is whatever arrived in the
  single read. Bodies larger than the read buffer are truncated.
- No chunked transfer encoding, keep-alive or pipelining.
- No method or version validation: unknown methods simply fall through
  to the 404 route.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple, Union

from ..errors import InvalidInputError


@dataclass
class HTTPRequest:
    """
    A parsed request.

    Attributes:
        method: First token of the request line ("GET", "POST", ...).
        path: Second token of the request line, used verbatim for routing.
        version: Third token if present ("HTTP/1.1"), else "".
        headers: Header name (lowercase) → value.
        body: Text after the first blank line.
        client_address: (ip, port) of the peer.
    """

    method: str
    path: str
    version: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    client_address: Tuple[str, int] = ("", 0)

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


def parse_request_line(request: str) -> Tuple[str, str]:
    """
    Extract (method, path) from the first line of a request.

    Raises:
        InvalidInputError: Empty request, or fewer than two tokens.
    """
    if not request:
        raise InvalidInputError("Empty request")

    first_line = request.splitlines()[0] if request.splitlines() else ""
    parts = first_line.split()
    if len(parts) < 2:
        raise InvalidInputError("Invalid request line")

    return parts[0], parts[1]


def extract_body(request: str) -> str:
    """
    Return everything after the first blank line.

    Tries the standard CRLF separator first, then a bare "\\n\\n" for
    hand-typed requests (netcat, telnet). No separator → empty body.
    """
    body_start = request.find("\r\n\r\n")
    if body_start != -1:
        return request[body_start + 4:]

    body_start = request.find("\n\n")
    if body_start != -1:
        return request[body_start + 2:]

    return ""


def _parse_headers(request: str) -> Dict[str, str]:
    head = request.replace("\r\n", "\n").split("\n\n", 1)[0]
    headers: Dict[str, str] = {}
    for line in head.split("\n")[1:]:
        name, sep, value = line.partition(":")
        if sep and name.strip():
            headers[name.strip().lower()] = value.strip()
    return headers


def parse_request(
    data: Union[bytes, str],
    client_address: Tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Parse raw request data into an HTTPRequest.

    Bytes are decoded as UTF-8 with invalid sequences replaced, so a
    request split mid-character still parses.

    Raises:
        InvalidInputError: If the request line is missing or malformed.
    """
    if isinstance(data, bytes):
        text = data.decode("utf-8", errors="replace")
    else:
        text = data

    method, path = parse_request_line(text)
    first_line_parts = text.splitlines()[0].split()
    version = first_line_parts[2] if len(first_line_parts) > 2 else ""

    return HTTPRequest(
        method=method,
        path=path,
        version=version,
        headers=_parse_headers(text),
        body=extract_body(text),
        client_address=client_address,
    )
