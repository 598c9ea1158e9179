"""Tracing and metrics bootstrap for worker processes."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.trace import Span

from treasury.core.config import get_settings
from treasury.obs import initialise_tracing, inject_traceparent, report_next_run, span_from_traceparent


def configure_worker(service_name: str, *, next_run_timestamp: float | None = None) -> None:
    """Initialise tracing and publish the first scheduled run time."""

    settings = get_settings()
    if settings.enable_tracing:
        initialise_tracing(
            service_name=service_name,
            endpoint=settings.otel_exporter_endpoint,
            instrument_logging=False,
        )
    if settings.enable_metrics and next_run_timestamp is not None:
        report_next_run(next_run_timestamp)


@contextmanager
def worker_span(name: str, traceparent: str | None = None, **attributes: Any) -> Iterator[Span]:
    with span_from_traceparent(name, traceparent, **attributes) as span:
        yield span


def current_traceparent() -> str | None:
    """Return the active span's ``traceparent`` header value, if any."""

    if trace.get_current_span().get_span_context().trace_id == 0:
        return None
    return inject_traceparent({}).get("traceparent")


__all__ = ["configure_worker", "current_traceparent", "worker_span"]
