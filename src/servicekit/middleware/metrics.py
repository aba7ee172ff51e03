"""
=============================================================================
IN-MEMORY METRICS
=============================================================================

Named integer counters and float gauges, shared by every connection
thread and reported by GET /metrics.

    counters   {"requests_total": 42, "responses_200": 40, "responses_404": 2}
    gauges     {"active_connections": 3.0}

Counters and gauges live behind separate locks; a snapshot reads one
map, then the other, so it is not atomic across both. Nothing is ever
evicted.

MetricsMiddleware increments:
    requests_total          once per request that reached the pipeline
    responses_<status>      once per response, keyed by status code

=============================================================================
"""

import json
import threading
import time
from typing import Any, Dict, Optional

from .base import Middleware, NextHandler
from ..errors import InvalidInputError, SerializationError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..utils import current_timestamp


REQUESTS_TOTAL = "requests_total"


class MetricsCollector:
    """Thread-safe counters and gauges."""

    def __init__(self):
        self._counters: Dict[str, int] = {}
        self._gauges: Dict[str, float] = {}
        self._counters_lock = threading.Lock()
        self._gauges_lock = threading.Lock()
        self._start_time = time.monotonic()

    def increment_counter(self, name: str, delta: int = 1) -> None:
        """
        Add delta to a counter, creating it at 0 first.

        Raises:
            InvalidInputError: If delta is negative.
        """
        if delta < 0:
            raise InvalidInputError(f"Counter '{name}' cannot be decremented (delta={delta})")
        with self._counters_lock:
            self._counters[name] = self._counters.get(name, 0) + delta

    def set_gauge(self, name: str, value: float) -> None:
        with self._gauges_lock:
            self._gauges[name] = value

    def get_counter(self, name: str) -> int:
        with self._counters_lock:
            return self._counters.get(name, 0)

    def get_gauge(self, name: str) -> Optional[float]:
        with self._gauges_lock:
            return self._gauges.get(name)

    @property
    def uptime_seconds(self) -> int:
        """Whole seconds since the collector was created."""
        return int(time.monotonic() - self._start_time)

    def snapshot(self) -> dict:
        with self._counters_lock:
            counters = dict(self._counters)
        with self._gauges_lock:
            gauges = dict(self._gauges)
        return {
            "counters": counters,
            "gauges": gauges,
            "timestamp": current_timestamp(),
        }

    def get_metrics_json(self, **extra: Any) -> str:
        """
        Serialize snapshot() as JSON.

        Keyword arguments are added as top-level fields ahead of the
        snapshot, e.g. get_metrics_json(status="healthy").

        Raises:
            SerializationError: If a gauge holds a value JSON cannot
                represent (NaN or infinity).
        """
        try:
            report = dict(extra)
            report.update(self.snapshot())
            return json.dumps(report, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SerializationError.wrap(e)


class MetricsMiddleware(Middleware):
    """Counts requests and responses by status code."""

    def __init__(self, collector: MetricsCollector):
        self.collector = collector

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        self.collector.increment_counter(REQUESTS_TOTAL)
        response = next(request)
        self.collector.increment_counter(f"responses_{int(response.status)}")
        return response
