"""Prometheus metrics configuration and middleware."""

import re
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from wellness_dashboard.core.config import settings
from wellness_dashboard.core.logging import get_logger

logger = get_logger(__name__)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code", "status_class"]
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_class"]
)

REPORT_DURATION = Histogram(
    "report_duration_seconds",
    "Time spent assembling a report, including store queries",
    ["report", "outcome"]
)

REPORT_ROWS = Counter(
    "report_rows_total",
    "Source records consumed while assembling reports",
    ["report"]
)


class ReportObservation:
    """Mutable handle a report uses to record how many rows it consumed."""

    def __init__(self, report: str):
        self.report = report
        self.rows = 0

    def add_rows(self, count: int) -> None:
        self.rows += count


@contextmanager
def observe_report(report: str) -> Iterator[ReportObservation]:
    """Time a report and count the rows it read."""
    observation = ReportObservation(report)
    start_time = time.perf_counter()
    outcome = "success"
    try:
        yield observation
    except Exception:
        outcome = "error"
        raise
    finally:
        duration = time.perf_counter() - start_time
        REPORT_DURATION.labels(report=report, outcome=outcome).observe(duration)
        REPORT_ROWS.labels(report=report).inc(observation.rows)
        logger.info(
            "Report assembled",
            report=report,
            outcome=outcome,
            rows=observation.rows,
            duration_ms=round(duration * 1000, 2),
        )


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus request metrics."""

    def __init__(self, app, app_name: str = "wellness_dashboard"):
        super().__init__(app)
        self.app_name = app_name

    def _get_endpoint_label(self, path: str) -> str:
        """Normalize endpoint path for metrics labels."""
        return re.sub(r'/\d+', '/{id}', path)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not settings.prometheus_enabled:
            return await call_next(request)

        method = request.method
        endpoint = self._get_endpoint_label(request.url.path)
        start_time = time.time()
        status_code = "500"

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
            return response
        finally:
            duration = time.time() - start_time
            status_class = f"{status_code[0]}xx"
            REQUEST_COUNT.labels(
                method=method,
                endpoint=endpoint,
                status_code=status_code,
                status_class=status_class
            ).inc()
            REQUEST_DURATION.labels(
                method=method,
                endpoint=endpoint,
                status_class=status_class
            ).observe(duration)


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
