"""
=============================================================================
SERVICEKIT - Starter Scaffold for a Small Networked Service
=============================================================================

A minimal, dependency-free service skeleton: a raw-socket HTTP endpoint
with four routes, layered configuration, a closed error taxonomy, and
the usual operational helpers (rate limiting, metrics, health checks,
retry with backoff).

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    servicekit/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI (servicekit / python -m servicekit)
    ├── server.py            # ServiceServer: routes + middleware + sockets
    ├── config.py            # Config and its four groups
    ├── errors.py            # ServiceError and the ten error kinds
    ├── logs.py              # configure_logging, JsonFormatter
    ├── processing.py        # process_data
    ├── utils.py             # timestamps, validation, retry_with_backoff
    ├── core/                # Sockets and threads
    │   ├── socket_server.py # Accept loop, signals
    │   ├── dispatcher.py    # Thread per connection, max_connections
    │   └── connection.py    # Single read/write exchange
    ├── http/                # Just enough HTTP
    │   ├── request.py       # Request line + body
    │   ├── response.py      # Response serialization
    │   ├── router.py        # Exact (METHOD, PATH) routing
    │   └── status_codes.py  # HTTPStatus, error → status
    ├── middleware/
    │   ├── base.py          # Middleware, MiddlewarePipeline
    │   ├── logging.py       # Access log
    │   ├── metrics.py       # MetricsCollector + middleware
    │   └── rate_limit.py    # RateLimiter + middleware
    └── handlers/
        ├── health.py        # HealthChecker, GET /health
        └── metrics.py       # GET /metrics

=============================================================================
QUICK START
=============================================================================

    from servicekit import Config, ServiceServer

    config = Config.load()
    ServiceServer(config).run()

=============================================================================
"""

__version__ = "0.1.0"

from .config import (
    Config,
    DatabaseConfig,
    LoggingConfig,
    SecurityConfig,
    ServerConfig,
)
from .errors import (
    AuthError,
    ConfigError,
    DatabaseError,
    ErrorSeverity,
    InternalError,
    InvalidInputError,
    IoError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    SerializationError,
    ServiceError,
)
from .handlers import HealthChecker
from .logs import configure_logging
from .middleware import MetricsCollector, RateLimiter
from .processing import process_data
from .server import ServiceServer
from .utils import retry_with_backoff, retry_with_backoff_async

__all__ = [
    "__version__",
    "Config",
    "ServerConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "SecurityConfig",
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
    "HealthChecker",
    "MetricsCollector",
    "RateLimiter",
    "ServiceServer",
    "configure_logging",
    "process_data",
    "retry_with_backoff",
    "retry_with_backoff_async",
]
