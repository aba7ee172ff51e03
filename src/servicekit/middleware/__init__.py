"""
=============================================================================
MIDDLEWARE
=============================================================================

Cross-cutting request processing that wraps the router:

LoggingMiddleware:
    One access log line per request (text or JSON).

MetricsMiddleware:
    Counts requests and responses by status into a MetricsCollector.

RateLimitMiddleware:
    Answers 429 once the shared RateLimiter's window is full.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .metrics import MetricsCollector, MetricsMiddleware
from .rate_limit import RateLimiter, RateLimitMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
    "MetricsCollector",
    "MetricsMiddleware",
    "RateLimiter",
    "RateLimitMiddleware",
]
