"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One line per handled request on the "servicekit.access" logger.

    TEXT (default):
    127.0.0.1 - - [17/Oct/2026:10:55:36 +0000] "GET /health" 200 41 0.52ms "curl/8.0"

    JSON (logging.format = "json" or logging.structured = true):
    {"method": "GET", "path": "/health", "client_ip": "127.0.0.1",
     "user_agent": "curl/8.0", "status_code": 200, "content_length": 41,
     "duration_ms": 0.52, "timestamp": "17/Oct/2026:10:55:36 +0000"}

Requests that fail to parse never reach the pipeline; they are logged
by the server at the error's severity instead.

=============================================================================
"""

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("servicekit.access")


@dataclass
class RequestLog:
    """A single access log entry."""

    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache combined-style line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms "{self.user_agent}"'
        )


class LoggingMiddleware(Middleware):
    """
    Logs method, path, status, size and duration of every request.

    Args:
        log_format: "text" or "json".
        log_level: Level the access lines are emitted at.
        skip_paths: Paths not to log (e.g. a frequently polled /health).
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
        skip_paths: Optional[Iterable[str]] = None,
    ):
        self.log_format = log_format
        self.log_level = log_level
        self.skip_paths = set(skip_paths or ())

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        if request.path in self.skip_paths:
            return response

        entry = RequestLog(
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=(time.perf_counter() - start_time) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())

        return response
