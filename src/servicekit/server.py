"""
=============================================================================
SERVICE SERVER
=============================================================================

Ties the pieces together. For every accepted connection:

    ┌──────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │  SocketServer.accept()                                               │
    │       │                                                              │
    │       ▼                                                              │
    │  ConnectionDispatcher.submit() ──full──► 503 {"error":"Server        │
    │       │                                       overloaded"} + close   │
    │       ▼  (own thread)                                                │
    │  Connection.read_request()        one recv() of buffer_size bytes    │
    │       │                                                              │
    │       ▼                                                              │
    │  parse_request() ──InvalidInputError──► log at severity, close,      │
    │       │                                 NO response                  │
    │       ▼                                                              │
    │  LoggingMiddleware → MetricsMiddleware → RateLimitMiddleware         │
    │       │                                                              │
    │       ▼                                                              │
    │  Router                                                              │
    │     GET  /         → greeting page                                   │
    │     GET  /health   → HealthHandler                                   │
    │     POST /process  → process_data(body)                              │
    │     GET  /metrics  → MetricsHandler                                  │
    │     *              → 404 page                                        │
    │       │                                                              │
    │       ▼                                                              │
    │  Connection.send_response() + close()                                │
    │                                                                      │
    └──────────────────────────────────────────────────────────────────────┘

The rate limiter, metrics collector and health checker are created once
per server and shared by every connection thread.

=============================================================================
"""

import logging
import threading
from datetime import timedelta
from typing import Optional, Tuple, Union

from .config import Config
from .core import Connection, ConnectionDispatcher, SocketServer
from .core.connection import DEFAULT_BUFFER_SIZE
from .errors import InvalidInputError, ServiceError
from .handlers import HealthChecker, HealthHandler, MetricsHandler
from .http import (
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    ResponseBuilder,
    Router,
    error_response,
    parse_request,
    status_for_error,
)
from .middleware import (
    LoggingMiddleware,
    MetricsCollector,
    MetricsMiddleware,
    Middleware,
    MiddlewarePipeline,
    RateLimiter,
    RateLimitMiddleware,
)
from .processing import process_data


logger = logging.getLogger(__name__)

INDEX_PAGE = "<h1>Hello from servicekit!</h1><p>Server is running.</p>"


class ServiceServer:
    """
    The HTTP-like service.

    =========================================================================
    USAGE
    =========================================================================

        config = Config.load()
        server = ServiceServer(config)
        server.run()                      # blocks until SIGINT/SIGTERM

    Sharing a health checker with the rest of the application:

        checker = HealthChecker().add_check(ping_database, name="database")
        server = ServiceServer(config, health_checker=checker)

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        health_checker: Optional[HealthChecker] = None,
        metrics: Optional[MetricsCollector] = None,
        rate_limiter: Optional[RateLimiter] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        """
        Args:
            config: Validated configuration. Defaults to Config().
            health_checker: Probes run by GET /health (none by default,
                so the server reports healthy).
            metrics: Collector reported by GET /metrics.
            rate_limiter: Overrides the limiter built from
                security.rate_limit_rpm. Ignored when rate limiting is
                disabled.
            buffer_size: Bytes read from each connection.

        Raises:
            ConfigError: If the configuration is invalid.
        """
        self.config = config or Config()
        self.config.validate()

        self.health_checker = health_checker or HealthChecker()
        self.metrics = metrics or MetricsCollector()

        security = self.config.security
        self.rate_limiter: Optional[RateLimiter] = None
        if security.rate_limiting_enabled:
            self.rate_limiter = rate_limiter or RateLimiter(
                security.rate_limit_rpm, timedelta(minutes=1)
            )

        self._router = Router()
        self._register_routes()

        self._pipeline = MiddlewarePipeline()
        self._pipeline.add(LoggingMiddleware(log_format=self._access_log_format()))
        self._pipeline.add(MetricsMiddleware(self.metrics))
        if self.rate_limiter is not None:
            self._pipeline.add(RateLimitMiddleware(self.rate_limiter))
        self._handler = self._pipeline.wrap(self._router.handle)

        server = self.config.server
        self._socket_server = SocketServer(
            server.host,
            server.port,
            buffer_size=buffer_size,
            timeout=server.timeout or None,
        )
        self._dispatcher = ConnectionDispatcher(
            server.max_connections,
            on_active_change=self._record_active_connections,
        )

    def _access_log_format(self) -> str:
        logging_config = self.config.logging
        if logging_config.structured or logging_config.format == "json":
            return "json"
        return "text"

    # =========================================================================
    # ROUTES
    # =========================================================================

    def _register_routes(self):
        health = HealthHandler(self.health_checker)
        metrics = MetricsHandler(self.metrics)

        self._router.add_route("GET", "/", self._index)
        self._router.add_route("GET", "/health", health.handle)
        self._router.add_route("POST", "/process", self._process)
        self._router.add_route("GET", "/metrics", metrics.handle)

    def _index(self, request: HTTPRequest) -> HTTPResponse:
        return ResponseBuilder().html(INDEX_PAGE).build()

    def _process(self, request: HTTPRequest) -> HTTPResponse:
        try:
            result = process_data(request.body)
        except InvalidInputError as e:
            return error_response(HTTPStatus.BAD_REQUEST, str(e))
        return ResponseBuilder().json({"result": result, "status": "success"}).build()

    @property
    def router(self) -> Router:
        return self._router

    def use(self, middleware: Middleware) -> "ServiceServer":
        """
        Add middleware inside the built-in ones (closest to the router).

        Returns self for chaining.
        """
        self._pipeline.add(middleware)
        self._handler = self._pipeline.wrap(self._router.handle)
        return self

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run a parsed request through middleware and router.

        A ServiceError escaping a handler becomes a JSON error with the
        matching status; anything else becomes a 500.
        """
        try:
            return self._handler(request)
        except ServiceError as e:
            logger.log(e.log_level, f"Handler error for {request.method} {request.path}: {e}")
            return error_response(status_for_error(e), str(e))
        except Exception as e:
            logger.exception(f"Unexpected handler error for {request.method} {request.path}: {e}")
            return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error")

    def handle_request_bytes(
        self,
        data: Union[bytes, str],
        client_address: Tuple[str, int] = ("", 0),
    ) -> HTTPResponse:
        """
        Parse raw request data and produce the response for it.

        Raises:
            InvalidInputError: If the request line is empty or malformed.
        """
        request = parse_request(data, client_address)
        logger.info(f"Received request: {request.method} {request.path} {request.version}".rstrip())
        return self.handle_request(request)

    def _handle_connection(self, conn: Connection):
        """Hand an accepted connection to its own thread (accept loop)."""
        logger.info(f"New connection from {conn.client_ip}:{conn.address[1]}")

        if not self._dispatcher.submit(self._process_connection, args=(conn,)):
            logger.warning(f"[{conn.id}] At max_connections, rejecting connection")
            # close() drains for up to 0.5s; keep it off the accept loop
            threading.Thread(
                target=self._reject_connection,
                args=(conn,),
                name=f"Reject-{conn.id}",
                daemon=True,
            ).start()

    def _reject_connection(self, conn: Connection):
        response = error_response(HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
        with conn:
            conn.send_response(response.to_bytes())

    def _record_active_connections(self, active: int):
        self.metrics.set_gauge("active_connections", float(active))

    def _process_connection(self, conn: Connection):
        """Serve one exchange on a connection (worker thread)."""
        with conn:
            try:
                data = conn.read_request()
                response = self.handle_request_bytes(data, conn.address)
            except ServiceError as e:
                logger.log(
                    e.log_level,
                    f"Error handling connection from {conn.client_ip}:{conn.address[1]}: {e}",
                )
                return

            conn.send_response(response.to_bytes())

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port) once running, else the configured one."""
        return self._socket_server.address

    @property
    def port(self) -> int:
        return self.address[1]

    def run(self):
        """
        Serve until shutdown() or SIGINT/SIGTERM (blocking).

        Raises:
            NetworkError: If the configured address cannot be bound.
        """
        if self.config.server.tls_enabled:
            logger.warning("TLS requested but not supported; serving plain TCP")

        logger.info(f"Starting HTTP server on {self.config.server_address()}")
        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Stop accepting connections. Safe to call from any thread."""
        self._socket_server.shutdown()

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._dispatcher.shutdown(wait=True, timeout=float(self.config.server.timeout or 5))
        logger.info("Server stopped")
