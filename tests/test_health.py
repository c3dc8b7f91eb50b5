import pytest
from fastapi.testclient import TestClient

from app.core import health as health_module
from app.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def _mock_env(monkeypatch):
    monkeypatch.setattr(health_module.settings, "environment", "test")
    yield


def test_health_returns_running_message() -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    payload = body["data"]
    assert payload["status"] == "ok"
    assert payload["message"] == "Loan Desk API is running"
    assert payload["version"] == health_module.APP_VERSION
    assert "timestamp" in payload


def test_health_live_returns_ok() -> None:
    response = client.get("/api/health/live")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ok"


def test_health_ready_ok(monkeypatch) -> None:
    async def ok_db():
        return {"status": "ok"}

    async def ok_redis():
        return {"status": "ok"}

    monkeypatch.setattr(health_module, "_check_db", ok_db)
    monkeypatch.setattr(health_module, "_check_redis", ok_redis)

    response = client.get("/api/health/ready")
    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["status"] == "ok"
    assert payload["ready"] is True
    assert payload["checks"]["database"]["status"] == "ok"


def test_health_ready_degraded(monkeypatch) -> None:
    async def bad_db():
        return {"status": "error", "error": "unreachable"}

    async def ok_redis():
        return {"status": "ok"}

    monkeypatch.setattr(health_module, "_check_db", bad_db)
    monkeypatch.setattr(health_module, "_check_redis", ok_redis)

    response = client.get("/api/health/ready")
    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["status"] == "degraded"
    assert payload["ready"] is False
    assert payload["checks"]["database"]["status"] == "error"


def test_skipped_redis_does_not_degrade_readiness(monkeypatch) -> None:
    async def ok_db():
        return {"status": "ok"}

    monkeypatch.setattr(health_module, "_check_db", ok_db)
    monkeypatch.setattr(health_module, "get_redis_client", lambda: None)

    payload = client.get("/api/health/ready").json()["data"]
    assert payload["checks"]["redis"]["status"] == "skipped"
    assert payload["ready"] is True


def test_unknown_route_returns_envelope() -> None:
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "API endpoint not found"}


def test_security_headers_present() -> None:
    response = client.get("/api/health")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert response.headers["cache-control"] == "no-store"
    assert response.headers["x-request-id"]


def test_request_id_is_echoed() -> None:
    response = client.get("/api/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["x-request-id"] == "req-123"
