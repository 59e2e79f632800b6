"""
OpenTelemetry spans around fetch cycles and API requests.

A fetch cycle is one span named "fetch_cycle"; the HTTP calls and store
writes it makes happen while that span is current, and every structlog
line written meanwhile carries its trace and span ids.

Tracing is off unless setup_tracing() runs. Until then get_tracer()
hands out OpenTelemetry's no-op tracer and spans cost nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import Span, StatusCode, Tracer

logger = logging.getLogger(__name__)

DEFAULT_OTLP_ENDPOINT = "http://localhost:4317"

_provider: TracerProvider | None = None


def setup_tracing(
    service_name: str,
    otlp_endpoint: str | None = None,
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """
    Install the global TracerProvider.

    Spans go to an OTLP gRPC collector in batches, or synchronously to
    `exporter` when one is given (tests pass an InMemorySpanExporter).
    """
    global _provider

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        destination = type(exporter).__name__
    else:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        destination = otlp_endpoint or DEFAULT_OTLP_ENDPOINT
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=destination, insecure=True))
        )

    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info(f"Tracing enabled for {service_name}, exporting to {destination}")
    return provider


def get_tracer(name: str) -> Tracer:
    return trace.get_tracer(name)


def is_tracing_enabled() -> bool:
    return _provider is not None


@contextmanager
def traced(
    tracer: Tracer,
    name: str,
    attributes: Mapping[str, Any] | None = None,
) -> Iterator[Span]:
    """
    Run a block inside a span; an exception escaping the block marks the
    span as failed before it propagates.
    """
    with tracer.start_as_current_span(name, attributes=dict(attributes or {})) as span:
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(StatusCode.ERROR, f"{type(exc).__name__}: {exc}")
            raise


def add_trace_context(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor adding trace_id and span_id while a span is current."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict
