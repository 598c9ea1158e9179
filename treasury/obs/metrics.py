"""Prometheus metrics for the API and the scheduler worker."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "route"),
)
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "route", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "http_request_errors_total",
    "HTTP requests that ended with a server error.",
    labelnames=("method", "route", "status"),
)
RESERVE_FUND_OPERATION_COUNTER = Counter(
    "reserve_fund_operations_total",
    "Reserve fund transfers by operation and outcome.",
    labelnames=("operation", "outcome"),
)
AUTO_TRANSFER_RUN_COUNTER = Counter(
    "reserve_fund_auto_transfer_runs_total",
    "Scheduled auto-transfer runs by outcome.",
    labelnames=("outcome",),
)
SCHEDULER_NEXT_RUN_GAUGE = Gauge(
    "reserve_fund_scheduler_next_run_timestamp_seconds",
    "Unix time of the next scheduled auto-transfer run.",
)


def _route_label(request: Request) -> str:
    # Route templates keep ids out of the label set.
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Records request count, latency and server errors per route."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        started = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            route = _route_label(request)
            if status.startswith("5"):
                REQUEST_ERROR_COUNTER.labels(method=request.method, route=route, status=status).inc()
            REQUEST_LATENCY_SECONDS.labels(method=request.method, route=route).observe(
                time.perf_counter() - started
            )
            REQUEST_COUNTER.labels(method=request.method, route=route, status=status).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def report_next_run(timestamp: float) -> None:
    """Publish when the scheduler will fire next."""
    SCHEDULER_NEXT_RUN_GAUGE.set(max(0.0, float(timestamp)))


__all__ = [
    "AUTO_TRANSFER_RUN_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "RESERVE_FUND_OPERATION_COUNTER",
    "SCHEDULER_NEXT_RUN_GAUGE",
    "metrics_endpoint",
    "metrics_router",
    "report_next_run",
]
