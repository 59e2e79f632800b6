"""Tests for the health endpoint."""

from fastapi.testclient import TestClient

from keyword_notifier.api.app import create_app
from keyword_notifier.services.fetch_cycle import FetchCycle
from keyword_notifier.services.scheduler import ScheduledSource, Scheduler


class TestHealthEndpoint:
    def test_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["store"]["status"] == "healthy"
        assert data["counts"] == {"stackoverflow": 2, "twitter": 1}
        assert data["scheduler"] is None

    def test_unhealthy_store(self, failing_client):
        data = failing_client.get("/health").json()

        assert data["status"] == "unhealthy"
        assert data["counts"] == {}

    def test_health_check_exception(self, client, mock_store):
        mock_store.health_check.side_effect = OSError("Connection refused")

        data = client.get("/health").json()

        assert data["status"] == "unhealthy"
        assert "Connection refused" in data["store"]["details"]["error"]

    def test_reports_scheduler(self, mock_store, single_shot_source, memory_store, metrics):
        cycle = FetchCycle(single_shot_source([]), "rustlang", memory_store, metrics=metrics)
        scheduler = Scheduler([ScheduledSource(cycle, 300)], metrics=metrics)
        app = create_app(store=mock_store, scheduler=scheduler)

        with TestClient(app) as client:
            data = client.get("/health").json()

        assert data["scheduler"]["running"] is False
        assert data["scheduler"]["sources"]["stackoverflow"]["state"] == "idle"
        assert data["scheduler"]["sources"]["stackoverflow"]["interval_seconds"] == 300
