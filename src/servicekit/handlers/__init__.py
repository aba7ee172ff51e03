"""
Request handlers for the built-in endpoints.

    HealthHandler   GET /health
    MetricsHandler  GET /metrics
"""

from .health import HealthCheck, HealthChecker, HealthHandler
from .metrics import MetricsHandler

__all__ = [
    "HealthCheck",
    "HealthChecker",
    "HealthHandler",
    "MetricsHandler",
]
