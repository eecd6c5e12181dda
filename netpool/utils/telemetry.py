"""OpenTelemetry tracing setup and utilities."""

import logging
from contextlib import contextmanager
from typing import Optional, Any

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, BatchSpanProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

from netpool.config import settings
from netpool import __version__

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: Optional[trace.Tracer] = None


def setup_telemetry() -> None:
    """Initialize OpenTelemetry tracing.

    This should be called once at application startup, before
    any other operations that might create spans.
    """
    global _tracer

    resource = Resource(
        attributes={
            SERVICE_NAME: settings.OTEL_SERVICE_NAME,
            SERVICE_VERSION: __version__,
            "environment": settings.ENVIRONMENT,
        }
    )

    sampler = TraceIdRatioBased(settings.OTEL_TRACE_SAMPLE_RATE)
    provider = TracerProvider(resource=resource, sampler=sampler)

    if settings.OTEL_EXPORT_CONSOLE:
        console_exporter = ConsoleSpanExporter()
        provider.add_span_processor(BatchSpanProcessor(console_exporter))

    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(__name__, __version__)

    logger.info(
        "OpenTelemetry initialized",
        extra={
            "service_name": settings.OTEL_SERVICE_NAME,
            "sample_rate": settings.OTEL_TRACE_SAMPLE_RATE,
            "export_console": settings.OTEL_EXPORT_CONSOLE,
        },
    )


def instrument_app(app: Any) -> None:
    """Instrument FastAPI application with OpenTelemetry."""
    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumented with OpenTelemetry")
    except Exception as e:
        logger.warning(f"Failed to instrument FastAPI: {e}")


def instrument_sqlalchemy(engine: Any) -> None:
    """Instrument SQLAlchemy engine with OpenTelemetry."""
    try:
        SQLAlchemyInstrumentor().instrument(engine=engine)
        logger.info("SQLAlchemy instrumented with OpenTelemetry")
    except Exception as e:
        logger.warning(f"Failed to instrument SQLAlchemy: {e}")


def get_tracer() -> trace.Tracer:
    """Get the global tracer instance, creating a default one if needed."""
    global _tracer

    if _tracer is None:
        _tracer = trace.get_tracer(__name__, __version__)

    return _tracer


@contextmanager
def trace_operation(
    name: str,
    attributes: Optional[dict] = None,
):
    """Context manager for creating a traced operation span.

    Exceptions are recorded on the span and re-raised.

    Example:
        with trace_operation("service.ippool.create", {"ippool.name": "LAN-A"}):
            ...
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)

        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


def add_span_attributes(**attributes) -> None:
    """Add attributes to the current span.

    Example:
        add_span_attributes(**{"ippool.id": 3})
    """
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)


def add_span_event(name: str, attributes: Optional[dict] = None) -> None:
    """Add an event to the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes or {})
