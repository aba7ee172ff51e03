"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Callable, Generator

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from servicekit import Config, ServiceServer
from servicekit.handlers import HealthChecker


class FakeClock:
    """Manually advanced clock for time-dependent tests."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /health HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample POST /process request."""
    body = b"hello world"
    return (
        b"POST /process HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: text/plain\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
        + body
    )


@pytest.fixture
def config() -> Config:
    """Default configuration with a short socket timeout."""
    config = Config()
    config.server.timeout = 5
    return config


@pytest.fixture
def server(config: Config) -> ServiceServer:
    """A server that is constructed but not listening."""
    return ServiceServer(config, health_checker=HealthChecker())


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def send_raw(port: int, data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes and read until the server closes the connection."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        if data:
            sock.sendall(data)
        sock.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class RunningServer:
    """Runs a ServiceServer in a background thread."""

    def __init__(self, server: ServiceServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.port

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def request(self, data: bytes) -> bytes:
        return send_raw(self.port, data)

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def running_server(free_port: int) -> Generator[RunningServer, None, None]:
    """A live server on a free port."""
    config = Config()
    config.server.port = free_port
    config.server.timeout = 5

    running = RunningServer(ServiceServer(config))
    running.start()

    yield running

    running.stop()


@pytest.fixture
def raw_request():
    """send_raw, for tests that open their own connections."""
    return send_raw


@pytest.fixture
def start_server() -> Generator[Callable[[Config], RunningServer], None, None]:
    """Factory for live servers with a custom config, stopped on teardown."""
    started = []

    def start(config: Config) -> RunningServer:
        running = RunningServer(ServiceServer(config))
        running.start()
        started.append(running)
        return running

    yield start

    for running in started:
        running.stop()
