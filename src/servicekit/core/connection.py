"""
=============================================================================
CONNECTION
=============================================================================

Wraps one accepted client socket for a single request/response exchange:

    ┌──────────────┐   recv(buffer_size)   ┌──────────────┐
    │   accepted   │ ────────────────────► │   request    │
    │    socket    │        ONE read       │    bytes     │
    └──────────────┘                       └──────┬───────┘
                                                  │  server handles
    ┌──────────────┐   sendall(response)   ┌──────▼───────┐
    │    closed    │ ◄──────────────────── │   response   │
    └──────────────┘   shutdown + close    └──────────────┘

Only one recv() is issued. TCP may deliver a request in several pieces,
so a request split across packets (or larger than the buffer) is seen
truncated. Clients of this service send small requests in one write.

The socket timeout (server.timeout) bounds both the read and the write.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..errors import NetworkError


logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 1024


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client (ip, port).
        buffer_size: Bytes requested by the single recv().
        timeout: Socket timeout in seconds (None blocks forever).
        id: Short identifier used in log lines.
    """

    socket: socket.socket
    address: Tuple[str, int]
    buffer_size: int = DEFAULT_BUFFER_SIZE
    timeout: Optional[float] = 30.0
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    created_at: float = field(default_factory=time.time)
    closed: bool = field(default=False, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    def read_request(self) -> bytes:
        """
        Read the request with a single recv().

        Returns:
            Whatever arrived, possibly b"" if the peer closed without
            sending anything.

        Raises:
            NetworkError: On timeout or a reset connection.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except socket.timeout:
            raise NetworkError(f"Read timed out after {self.timeout}s")
        except (ConnectionResetError, ConnectionAbortedError) as e:
            raise NetworkError.wrap(e)

    def send_response(self, data: bytes) -> bool:
        """
        Send the full response.

        Returns:
            True if sent, False if the connection was lost.
        """
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self):
        """
        Close gracefully: shutdown(SHUT_WR), drain, close.

        Safe to call more than once.
        """
        if self.closed:
            return
        self.closed = True

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            logger.debug(f"[{self.id}] Peer already disconnected")

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            # socket.timeout is an OSError; either way we are closing
            logger.debug(f"[{self.id}] Drain stopped")

        self.socket.close()
        logger.debug(f"[{self.id}] Connection closed after {time.time() - self.created_at:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
