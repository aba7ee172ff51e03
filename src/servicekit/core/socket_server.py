"""
=============================================================================
SOCKET SERVER
=============================================================================

The accept loop. Binds, listens, and hands every accepted connection to
a callback without waiting for it to be served.

    start(handler)
        │
        ├──► socket() + SO_REUSEADDR + TCP_NODELAY
        ├──► bind(host, port)        ──► NetworkError if the address is taken
        ├──► listen()
        ├──► SIGINT/SIGTERM → shutdown()   (main thread only)
        │
        └──► while running:
                 accept()            ◄── 1 s timeout so shutdown() is seen
                 handler(Connection(...))

shutdown() may be called from any thread or from a signal handler; the
loop notices within one accept timeout.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..errors import NetworkError
from .connection import DEFAULT_BUFFER_SIZE, Connection


logger = logging.getLogger(__name__)

ACCEPT_TIMEOUT = 1.0


class SocketServer:
    """
    Low-level TCP accept loop.

    Usage:
        server = SocketServer("127.0.0.1", 8080)
        server.start(handle_connection)   # blocks until shutdown()
    """

    def __init__(
        self,
        host: str,
        port: int,
        backlog: int = 128,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        timeout: Optional[float] = 30.0,
    ):
        self.host = host
        self.port = port
        self.backlog = backlog
        self.buffer_size = buffer_size
        self.timeout = timeout
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port), or the configured one before start()."""
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.host, self.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(ACCEPT_TIMEOUT)
        return sock

    def _setup_signals(self):
        # signal.signal() only works in the main thread of the interpreter
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Raises:
            NetworkError: If the address cannot be bound.
        """
        self._socket = self._create_socket()
        try:
            self._socket.bind((self.host, self.port))
        except OSError as e:
            self._socket.close()
            self._socket = None
            logger.error(f"Failed to bind to {self.host}:{self.port}: {e}")
            raise NetworkError(f"Failed to bind to {self.host}:{self.port}: {e}") from e

        self._socket.listen(self.backlog)
        self._running = True
        self._setup_signals()
        self._ready.set()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")
            connection_handler(Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.buffer_size,
                timeout=self.timeout,
            ))

    def shutdown(self):
        """Ask the accept loop to stop. Idempotent."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()
        if self._socket:
            self._socket.close()
            self._socket = None
        self._ready.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready.wait(timeout)
