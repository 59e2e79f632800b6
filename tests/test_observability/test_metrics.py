"""Tests for the Prometheus metrics collector."""


def _sample(metrics, name, **labels):
    return metrics._registry.get_sample_value(name, labels)


class TestMetricsCollector:
    def test_record_cycle(self, metrics):
        metrics.record_cycle("twitter", fetched=5, excluded=1, stored=4, pages=2, latency=0.3)

        assert _sample(metrics, "keyword_notifier_items_fetched_total", source="twitter") == 5
        assert _sample(metrics, "keyword_notifier_items_excluded_total", source="twitter") == 1
        assert _sample(metrics, "keyword_notifier_items_stored_total", source="twitter") == 4
        assert _sample(metrics, "keyword_notifier_pages_fetched_total", source="twitter") == 2
        assert _sample(metrics, "keyword_notifier_cycle_latency_seconds_count", source="twitter") == 1
        assert _sample(metrics, "keyword_notifier_last_success_timestamp_seconds", source="twitter") > 0

    def test_record_failure(self, metrics):
        metrics.record_failure("stackoverflow", "TransportError", latency=1.2)
        metrics.record_failure("stackoverflow", "TransportError")

        assert (
            _sample(
                metrics,
                "keyword_notifier_cycle_failures_total",
                source="stackoverflow",
                error_type="TransportError",
            )
            == 2
        )
        assert (
            _sample(metrics, "keyword_notifier_cycle_latency_seconds_count", source="stackoverflow")
            == 1
        )

    def test_set_running(self, metrics):
        metrics.set_running("twitter", True)
        assert _sample(metrics, "keyword_notifier_source_running", source="twitter") == 1

        metrics.set_running("twitter", False)
        assert _sample(metrics, "keyword_notifier_source_running", source="twitter") == 0
