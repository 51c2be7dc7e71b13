"""Tests for /api/health, /health and the service index."""

from sqlalchemy.exc import OperationalError

from prenatal_chat.db.connection import get_db


class TestDependencyHealth:
    def test_healthy(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["ai_service"] == "connected"
        assert body["timestamp"]

    def test_ai_service_down_is_503(self, client, fake_ai):
        fake_ai.healthy = False
        resp = client.get("/api/health")
        assert resp.status_code == 503
        body = resp.json()
        assert body["status"] == "unhealthy"
        assert body["database"] == "connected"
        assert body["ai_service"] == "error"
        assert "http://ai.test" in body["error"]

    def test_store_down_is_503(self, app, client):
        class BrokenSession:
            def execute(self, *args, **kwargs):
                raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

        app.dependency_overrides[get_db] = lambda: BrokenSession()
        resp = client.get("/api/health")
        assert resp.status_code == 503
        assert resp.json()["database"] == "error"


class TestLiveness:
    def test_liveness(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["service"] == "prenatal-chat-backend"
        assert body["uptime_seconds"] >= 0

    def test_liveness_ignores_ai_service(self, client, fake_ai):
        fake_ai.healthy = False
        assert client.get("/health").status_code == 200


class TestServiceIndex:
    def test_lists_endpoints(self, client):
        body = client.get("/").json()
        assert body["name"] == "Prenatal Chat API"
        assert body["endpoints"]["chat"] == "POST /api/chat"
