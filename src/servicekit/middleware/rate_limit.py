"""
=============================================================================
RATE LIMITING
=============================================================================

A single, global limiter: at most `limit` admissions in any trailing
`window`. It keeps the timestamp of every admission still inside the
window.

    limit = 3, window = 60s

    t=0   admit  [0]
    t=10  admit  [0, 10]
    t=20  admit  [0, 10, 20]
    t=30  REJECT [0, 10, 20]          ◄── full; nothing recorded
    t=61  admit  [10, 20, 61]         ◄── 0 fell out of the window

    time_until_available() at t=30 → 30.0  (0 leaves at t=60)

Rejections do not consume a slot, so a client hammering the server is
admitted again as soon as the oldest admission expires.

The limit is not per client: every connection shares one limiter.

=============================================================================
"""

import math
import threading
import time
from datetime import timedelta
from typing import Callable, List, Union

from .base import Middleware, NextHandler
from ..errors import InvalidInputError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, error_response
from ..http.status_codes import HTTPStatus


class RateLimiter:
    """
    Thread-safe sliding-window counter.

    Args:
        limit: Admissions allowed per window. Must be positive.
        window: Window length in seconds, or a timedelta.
        clock: Returns "now" in seconds (injectable for tests).

    Raises:
        InvalidInputError: If limit is not a positive integer or window
            is negative.
    """

    def __init__(
        self,
        limit: int,
        window: Union[float, timedelta],
        clock: Callable[[], float] = time.time,
    ):
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidInputError(f"Rate limit must be a positive integer, got {limit!r}")
        if isinstance(window, timedelta):
            window = window.total_seconds()
        if window < 0:
            raise InvalidInputError(f"Rate limit window cannot be negative, got {window!r}")

        self.limit = limit
        self.window = float(window)
        self._clock = clock
        self._timestamps: List[float] = []
        self._lock = threading.Lock()

    def _window_start(self, now: float) -> float:
        return max(0.0, now - self.window)

    def is_allowed(self) -> bool:
        """Admit and record one request if a slot is free."""
        with self._lock:
            now = self._clock()
            window_start = self._window_start(now)
            self._timestamps = [ts for ts in self._timestamps if ts >= window_start]

            if len(self._timestamps) < self.limit:
                self._timestamps.append(now)
                return True
            return False

    def current_count(self) -> int:
        """Admissions inside the current window. Does not mutate state."""
        with self._lock:
            window_start = self._window_start(self._clock())
            return sum(1 for ts in self._timestamps if ts >= window_start)

    def time_until_available(self) -> float:
        """Seconds until a slot frees up (0.0 if one is free now)."""
        with self._lock:
            now = self._clock()
            window_start = self._window_start(now)
            active = [ts for ts in self._timestamps if ts >= window_start]
            if len(active) < self.limit:
                return 0.0
            return max(0.0, min(active) + self.window - now)


class RateLimitMiddleware(Middleware):
    """
    Answers 429 Too Many Requests once the limiter is exhausted.

        pipeline.add(RateLimitMiddleware(RateLimiter(100, 60)))

    The 429 carries a Retry-After header (whole seconds, at least 1) and
    a JSON body {"error": "Rate limit exceeded", "status": "error"}.
    """

    def __init__(self, limiter: RateLimiter):
        self.limiter = limiter

    @classmethod
    def per_minute(cls, requests_per_minute: int) -> "RateLimitMiddleware":
        return cls(RateLimiter(requests_per_minute, timedelta(minutes=1)))

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        if self.limiter.is_allowed():
            return next(request)

        retry_after = max(1, math.ceil(self.limiter.time_until_available()))
        response = error_response(HTTPStatus.TOO_MANY_REQUESTS, "Rate limit exceeded")
        response.set_header("Retry-After", str(retry_after))
        return response
