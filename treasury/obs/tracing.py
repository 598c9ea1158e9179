"""OpenTelemetry setup shared by the API and the scheduler worker."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.trace import Span
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

_PROPAGATOR = TraceContextTextMapPropagator()


def _build_provider(service_name: str, endpoint: str | None) -> TracerProvider:
    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    if endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True)))
    else:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    return provider


def initialise_tracing(
    *,
    service_name: str,
    endpoint: str | None = None,
    instrument_logging: bool = True,
) -> None:
    """Install a global tracer provider unless one for ``service_name`` exists."""

    current = trace.get_tracer_provider()
    if isinstance(current, TracerProvider) and current.resource.attributes.get(SERVICE_NAME) == service_name:
        return

    trace.set_tracer_provider(_build_provider(service_name, endpoint))
    if instrument_logging:
        LoggingInstrumentor().instrument(set_logging_format=True)


def instrument_fastapi_app(app: FastAPI) -> None:
    FastAPIInstrumentor().instrument_app(app)


def instrument_sqlalchemy_engine(engine: Any) -> None:
    SQLAlchemyInstrumentor().instrument(engine=engine)


@contextmanager
def span_from_traceparent(name: str, traceparent: str | None, **attributes: Any) -> Iterator[Span]:
    """Start a span, continuing the trace named by ``traceparent`` when given."""

    context = _PROPAGATOR.extract(carrier={"traceparent": traceparent}) if traceparent else None
    with trace.get_tracer(__name__).start_as_current_span(name, context=context) as span:
        for key, value in attributes.items():
            span.set_attribute(key, value)
        yield span


def inject_traceparent(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` carrying the current trace context."""

    carrier = dict(headers)
    _PROPAGATOR.inject(carrier)
    return carrier


__all__ = [
    "initialise_tracing",
    "inject_traceparent",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "span_from_traceparent",
]
