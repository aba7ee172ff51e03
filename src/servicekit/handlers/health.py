"""
=============================================================================
HEALTH CHECKS
=============================================================================

A HealthChecker is an ordered list of probes. A probe is any zero-argument
callable: returning normally means healthy, raising ServiceError means
not.

    checker = (HealthChecker()
        .add_check(lambda: None, name="process")
        .add_check(ping_database, name="database"))

    checker.check_health()     ◄── raises the FIRST failure; later
                                   probes are not run

GET /health turns the result into JSON:

    200  {"status": "healthy", "timestamp": 1760000000}
    503  {"status": "unhealthy", "error": "Database error: ...",
          "timestamp": 1760000000}

Probes run sequentially on the request thread, with no timeout. Keep
them fast.

=============================================================================
"""

import logging
from typing import Callable, List, Optional, Tuple

from ..errors import InternalError, ServiceError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus
from ..utils import current_timestamp


logger = logging.getLogger(__name__)

HealthCheck = Callable[[], object]


class HealthChecker:
    """Runs registered probes in insertion order."""

    def __init__(self):
        self._checks: List[Tuple[str, HealthCheck]] = []

    def add_check(self, check: HealthCheck, name: Optional[str] = None) -> "HealthChecker":
        """
        Append a probe. Returns self for chaining.

        Args:
            check: Zero-argument callable; raise ServiceError to fail.
            name: Used in log messages. Defaults to "check <n>".
        """
        self._checks.append((name or f"check {len(self._checks)}", check))
        return self

    def check_health(self) -> None:
        """
        Run every probe until one fails.

        Raises:
            ServiceError: The first failure. Exceptions that are not
                ServiceErrors are wrapped in InternalError.
        """
        for index, (name, check) in enumerate(self._checks):
            try:
                check()
            except ServiceError as e:
                logger.error(f"Health check {index} ({name}) failed: {e}")
                raise
            except Exception as e:
                logger.error(f"Health check {index} ({name}) failed: {e!r}")
                raise InternalError.wrap(e)

    def __len__(self) -> int:
        return len(self._checks)


class HealthHandler:
    """Serves GET /health from a HealthChecker."""

    def __init__(self, checker: HealthChecker):
        self.checker = checker

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        try:
            self.checker.check_health()
        except ServiceError as e:
            return (ResponseBuilder()
                .status(HTTPStatus.SERVICE_UNAVAILABLE)
                .json({
                    "status": "unhealthy",
                    "error": str(e),
                    "timestamp": current_timestamp(),
                })
                .build())

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json({"status": "healthy", "timestamp": current_timestamp()})
            .build())
