"""
GET /metrics.

    {"uptime_seconds": 12, "requests_total": 7, "status": "healthy",
     "counters": {...}, "gauges": {...}, "timestamp": 1760000000}
"""

import logging

from ..errors import SerializationError
from ..http.request import HTTPRequest
from ..http.response import JSON, HTTPResponse, create_response, error_response
from ..http.status_codes import HTTPStatus
from ..middleware.metrics import REQUESTS_TOTAL, MetricsCollector


logger = logging.getLogger(__name__)


class MetricsHandler:
    """Reports uptime, request count and the collector snapshot."""

    def __init__(self, collector: MetricsCollector):
        self.collector = collector

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        try:
            body = self.collector.get_metrics_json(
                uptime_seconds=self.collector.uptime_seconds,
                requests_total=self.collector.get_counter(REQUESTS_TOTAL),
                status="healthy",
            )
        except SerializationError as error:
            logger.log(error.log_level, f"Cannot report metrics: {error}")
            return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, str(error))

        return create_response(HTTPStatus.OK, JSON, body)
