"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware, S3AuditSink
from .metrics import (
    AUTO_TRANSFER_RUN_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    RESERVE_FUND_OPERATION_COUNTER,
    SCHEDULER_NEXT_RUN_GAUGE,
    PrometheusMiddleware,
    metrics_router,
    report_next_run,
)
from .tracing import (
    initialise_tracing,
    inject_traceparent,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    span_from_traceparent,
)

__all__ = [
    "AUTO_TRANSFER_RUN_COUNTER",
    "AuditLogRecord",
    "AuditMiddleware",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "RESERVE_FUND_OPERATION_COUNTER",
    "S3AuditSink",
    "SCHEDULER_NEXT_RUN_GAUGE",
    "initialise_tracing",
    "inject_traceparent",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "metrics_router",
    "report_next_run",
    "span_from_traceparent",
]
