from modules.core.models import OutboxEvent


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["cache"]["status"] == "up"
        assert "response_time_ms" in data["services"]["cache"]

    def test_health_check_reports_outbox_backlog(self, client):
        OutboxEvent.objects.create(
            event_type="OrderPlaced", aggregate_id="a", payload={}, topic="orders"
        )

        data = client.get("/health").json()

        assert data["outbox_pending"] == 1

    def test_cache_failure_makes_service_unhealthy(self, client, monkeypatch):
        def broken(*args, **kwargs):
            raise ConnectionError("cache unreachable")

        monkeypatch.setattr("modules.core.views._check_cache", broken)

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["services"]["cache"] == {"status": "down"}
