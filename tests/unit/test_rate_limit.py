"""
Unit tests for rate limiting.
"""

import json
import threading
from datetime import timedelta

import pytest

from servicekit.errors import InvalidInputError
from servicekit.http.request import HTTPRequest
from servicekit.http.response import ResponseBuilder
from servicekit.http.status_codes import HTTPStatus
from servicekit.middleware.rate_limit import RateLimiter, RateLimitMiddleware


def ok_handler(request):
    return ResponseBuilder().json({"ok": True}).build()


class TestRateLimiter:
    """Tests for RateLimiter."""

    def test_admits_up_to_limit(self, clock):
        limiter = RateLimiter(3, 60, clock=clock)

        assert [limiter.is_allowed() for _ in range(4)] == [True, True, True, False]
        assert limiter.current_count() == 3

    def test_rejection_does_not_record(self, clock):
        """Test that rejected calls do not consume a slot."""
        limiter = RateLimiter(1, 60, clock=clock)
        limiter.is_allowed()
        for _ in range(5):
            assert not limiter.is_allowed()

        assert limiter.current_count() == 1

    def test_window_slides(self, clock):
        """Test that old admissions expire."""
        limiter = RateLimiter(2, 60, clock=clock)
        limiter.is_allowed()            # t=1000
        clock.advance(30)
        limiter.is_allowed()            # t=1030
        assert not limiter.is_allowed()

        clock.advance(30)               # t=1060: first admission still in window
        assert not limiter.is_allowed()

        clock.advance(1)                # t=1061: first admission expired
        assert limiter.is_allowed()
        assert limiter.current_count() == 2

    def test_current_count_does_not_mutate(self, clock):
        limiter = RateLimiter(2, 10, clock=clock)
        limiter.is_allowed()
        clock.advance(20)

        assert limiter.current_count() == 0
        assert limiter.current_count() == 0

    def test_timedelta_window(self, clock):
        limiter = RateLimiter(1, timedelta(minutes=1), clock=clock)
        assert limiter.window == 60.0

    def test_time_until_available(self, clock):
        limiter = RateLimiter(2, 60, clock=clock)
        assert limiter.time_until_available() == 0.0

        limiter.is_allowed()            # t=1000
        clock.advance(10)
        limiter.is_allowed()            # t=1010
        clock.advance(5)                # t=1015

        assert limiter.time_until_available() == pytest.approx(45.0)

    def test_early_clock_window_start_clamped(self):
        """Test that a clock near zero does not produce a negative window start."""
        limiter = RateLimiter(1, 60, clock=lambda: 5.0)
        assert limiter.is_allowed()
        assert not limiter.is_allowed()

    @pytest.mark.parametrize("limit", [0, -1, 1.5, True])
    def test_invalid_limit(self, limit):
        with pytest.raises(InvalidInputError):
            RateLimiter(limit, 60)

    def test_concurrent_admissions_respect_limit(self):
        """Test that threads never admit more than the limit."""
        limiter = RateLimiter(50, 3600)
        results = []
        lock = threading.Lock()

        def worker():
            for _ in range(20):
                allowed = limiter.is_allowed()
                with lock:
                    results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(results) == 50


class TestRateLimitMiddleware:
    """Tests for RateLimitMiddleware."""

    def test_passes_through_when_allowed(self, clock):
        middleware = RateLimitMiddleware(RateLimiter(1, 60, clock=clock))
        response = middleware(HTTPRequest("GET", "/"), ok_handler)

        assert response.status == HTTPStatus.OK

    def test_429_with_retry_after(self, clock):
        middleware = RateLimitMiddleware(RateLimiter(1, 60, clock=clock))
        middleware(HTTPRequest("GET", "/"), ok_handler)
        clock.advance(20.5)

        response = middleware(HTTPRequest("GET", "/"), ok_handler)

        assert response.status == HTTPStatus.TOO_MANY_REQUESTS
        assert response.headers["Retry-After"] == "40"
        assert json.loads(response.body) == {"error": "Rate limit exceeded", "status": "error"}

    def test_retry_after_at_least_one(self, clock):
        middleware = RateLimitMiddleware(RateLimiter(1, 60, clock=clock))
        middleware(HTTPRequest("GET", "/"), ok_handler)
        clock.advance(59.99)

        response = middleware(HTTPRequest("GET", "/"), ok_handler)
        assert response.headers["Retry-After"] == "1"

    def test_per_minute(self):
        middleware = RateLimitMiddleware.per_minute(100)
        assert middleware.limiter.limit == 100
        assert middleware.limiter.window == 60.0
