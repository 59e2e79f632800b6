"""Observability layer - logging, metrics, and tracing."""

from keyword_notifier.observability.logging import setup_logging
from keyword_notifier.observability.metrics import MetricsCollector, get_metrics
from keyword_notifier.observability.tracing import get_tracer, setup_tracing

__all__ = ["setup_logging", "MetricsCollector", "get_metrics", "setup_tracing", "get_tracer"]
