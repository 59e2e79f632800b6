"""
Prometheus metrics for monitoring the fetch pipeline.

Defines and exposes metrics for:
- Items fetched, excluded and stored per source
- Pages walked per source
- Fetch cycle latency and failures
- Scheduler state per source

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging
import time

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from keyword_notifier.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for cycle latency histograms (in seconds)
LATENCY_BUCKETS = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the keyword-notifier pipeline.

    Usage:
        metrics = MetricsCollector()
        metrics.start_server()

        metrics.record_cycle("twitter", fetched=12, excluded=2, stored=3, pages=2, latency=0.8)
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize Prometheus metrics.

        Args:
            registry: Registry to register metrics in (default: global REGISTRY)
        """
        self._registry = registry or REGISTRY

        self.items_fetched = Counter(
            "keyword_notifier_items_fetched_total",
            "Total raw items fetched from sources",
            ["source"],
            registry=self._registry,
        )

        self.items_excluded = Counter(
            "keyword_notifier_items_excluded_total",
            "Total items dropped by exclusion rules",
            ["source"],
            registry=self._registry,
        )

        self.items_stored = Counter(
            "keyword_notifier_items_stored_total",
            "Total new items persisted",
            ["source"],
            registry=self._registry,
        )

        self.pages_fetched = Counter(
            "keyword_notifier_pages_fetched_total",
            "Total result pages requested from sources",
            ["source"],
            registry=self._registry,
        )

        self.cycle_failures = Counter(
            "keyword_notifier_cycle_failures_total",
            "Total failed fetch cycles",
            ["source", "error_type"],
            registry=self._registry,
        )

        self.cycle_latency = Histogram(
            "keyword_notifier_cycle_latency_seconds",
            "Duration of one fetch cycle",
            ["source"],
            buckets=LATENCY_BUCKETS,
            registry=self._registry,
        )

        self.last_success = Gauge(
            "keyword_notifier_last_success_timestamp_seconds",
            "Unix time of the last successful fetch cycle",
            ["source"],
            registry=self._registry,
        )

        self.source_running = Gauge(
            "keyword_notifier_source_running",
            "Whether a fetch cycle is currently running (1) or the source is idle (0)",
            ["source"],
            registry=self._registry,
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        port = port or get_settings().metrics_port

        start_http_server(port, registry=self._registry)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_cycle(
        self,
        source: str,
        fetched: int,
        excluded: int,
        stored: int,
        pages: int,
        latency: float,
    ) -> None:
        """Record a successful fetch cycle."""
        self.items_fetched.labels(source=source).inc(fetched)
        self.items_excluded.labels(source=source).inc(excluded)
        self.items_stored.labels(source=source).inc(stored)
        self.pages_fetched.labels(source=source).inc(pages)
        self.cycle_latency.labels(source=source).observe(latency)
        self.last_success.labels(source=source).set(time.time())

    def record_failure(self, source: str, error_type: str, latency: float | None = None) -> None:
        """Record a failed fetch cycle."""
        self.cycle_failures.labels(source=source, error_type=error_type).inc()
        if latency is not None:
            self.cycle_latency.labels(source=source).observe(latency)

    def set_running(self, source: str, running: bool) -> None:
        """Set the scheduler state of a source."""
        self.source_running.labels(source=source).set(1 if running else 0)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
