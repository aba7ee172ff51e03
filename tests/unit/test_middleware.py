"""
Unit tests for the middleware pipeline and access logging.
"""

import json
import logging

import pytest

from servicekit.http.request import HTTPRequest
from servicekit.http.response import ResponseBuilder
from servicekit.http.status_codes import HTTPStatus
from servicekit.middleware import LoggingMiddleware, Middleware, MiddlewarePipeline, RequestLog


class Recorder(Middleware):
    """Appends its tag before and after calling the next handler."""

    def __init__(self, tag, calls):
        self.tag = tag
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.tag}:in")
        response = next(request)
        self.calls.append(f"{self.tag}:out")
        return response


class ShortCircuit(Middleware):
    def __call__(self, request, next):
        return ResponseBuilder().status(HTTPStatus.FORBIDDEN).body("blocked").build()


def ok_handler(request):
    return ResponseBuilder().body("ok").build()


class TestMiddlewarePipeline:
    """Tests for MiddlewarePipeline."""

    def test_empty_pipeline_returns_handler(self):
        assert MiddlewarePipeline().wrap(ok_handler) is ok_handler

    def test_first_added_is_outermost(self):
        calls = []
        pipeline = (MiddlewarePipeline()
            .add(Recorder("a", calls))
            .add(Recorder("b", calls)))

        def handler(request):
            calls.append("handler")
            return ok_handler(request)

        pipeline.wrap(handler)(HTTPRequest("GET", "/"))

        assert calls == ["a:in", "b:in", "handler", "b:out", "a:out"]
        assert len(pipeline) == 2

    def test_short_circuit_skips_handler(self):
        calls = []
        pipeline = MiddlewarePipeline().add(Recorder("a", calls)).add(ShortCircuit())

        response = pipeline.wrap(ok_handler)(HTTPRequest("GET", "/"))

        assert response.status == HTTPStatus.FORBIDDEN
        assert calls == ["a:in", "a:out"]

    def test_name(self):
        assert ShortCircuit().name == "ShortCircuit"


class TestLoggingMiddleware:
    """Tests for LoggingMiddleware."""

    def make_request(self):
        return HTTPRequest(
            method="GET",
            path="/health",
            headers={"user-agent": "pytest"},
            client_address=("127.0.0.1", 50000),
        )

    def test_text_line(self, caplog):
        caplog.set_level(logging.INFO, logger="servicekit.access")

        LoggingMiddleware()(self.make_request(), ok_handler)

        line = caplog.records[-1].getMessage()
        assert line.startswith("127.0.0.1 - - [")
        assert '"GET /health" 200 2 ' in line
        assert line.endswith('"pytest"')

    def test_json_line(self, caplog):
        caplog.set_level(logging.INFO, logger="servicekit.access")

        LoggingMiddleware(log_format="json")(self.make_request(), ok_handler)

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["method"] == "GET"
        assert entry["path"] == "/health"
        assert entry["status_code"] == 200
        assert entry["content_length"] == 2
        assert entry["client_ip"] == "127.0.0.1"

    def test_skip_paths(self, caplog):
        caplog.set_level(logging.INFO, logger="servicekit.access")

        LoggingMiddleware(skip_paths=["/health"])(self.make_request(), ok_handler)

        assert not [r for r in caplog.records if r.name == "servicekit.access"]

    def test_exception_logged_and_reraised(self, caplog):
        def broken(request):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            LoggingMiddleware()(self.make_request(), broken)

        assert "Request failed: GET /health - RuntimeError: boom" in caplog.text


class TestRequestLog:
    """Tests for RequestLog."""

    def test_duration_rounded(self):
        entry = RequestLog(
            method="GET",
            path="/",
            client_ip="-",
            user_agent="-",
            status_code=200,
            content_length=0,
            duration_ms=1.23456,
            timestamp="now",
        )
        assert entry.to_dict()["duration_ms"] == 1.23
        assert entry.to_text() == '- - - [now] "GET /" 200 0 1.23ms "-"'
