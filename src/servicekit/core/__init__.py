"""
=============================================================================
CORE NETWORKING
=============================================================================

    ┌──────────────────────────────────────────────────────────────┐
    │  SocketServer           accept loop, signals, shutdown        │
    │       │                                                       │
    │       ▼                                                       │
    │  ConnectionDispatcher   one thread per connection, capped     │
    │       │                 at max_connections                    │
    │       ▼                                                       │
    │  Connection             one read, one write, close            │
    └──────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection
from .dispatcher import ConnectionDispatcher
from .socket_server import SocketServer

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionDispatcher",
]
