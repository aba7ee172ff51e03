"""
=============================================================================
MIDDLEWARE PIPELINE
=============================================================================

Middleware wraps the router like layers of an onion. The service installs:

    ┌──────────────────────────────────────────────────────┐
    │  LoggingMiddleware        (sees every request)       │
    │  ┌────────────────────────────────────────────────┐  │
    │  │  MetricsMiddleware    (counts every request)   │  │
    │  │  ┌──────────────────────────────────────────┐  │  │
    │  │  │  RateLimitMiddleware (may answer 429)    │  │  │
    │  │  │  ┌────────────────────────────────────┐  │  │  │
    │  │  │  │        router.handle               │  │  │  │
    │  │  │  └────────────────────────────────────┘  │  │  │
    │  │  └──────────────────────────────────────────┘  │  │
    │  └────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────┘

The first middleware added is the outermost. A middleware either returns
a response itself (short-circuit) or calls next(request).

=============================================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)

NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Base class for middleware.

        class Timing(Middleware):
            def __call__(self, request, next):
                response = next(request)     # continue the chain
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Handle the request, usually by calling next(request)."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered list of middleware around a final handler.

        pipeline = MiddlewarePipeline().add(LoggingMiddleware())
        handler = pipeline.wrap(router.handle)
        response = handler(request)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append middleware (innermost so far). Returns self."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain MW1 → MW2 → ... → handler.

        Wraps in reverse so the first-added middleware ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = _bind(middleware, current)
        return current

    def __len__(self) -> int:
        return len(self._middleware)


def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
    def wrapped(request: HTTPRequest) -> HTTPResponse:
        return middleware(request, next_handler)
    return wrapped
