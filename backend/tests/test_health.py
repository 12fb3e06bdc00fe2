import leave_portal.db as db_module


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


def test_health(client, mongo):
    mongo["leave_requests"].insert_many([{"status": "pending"}, {"status": "approved"}])

    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["checks"]["database"]["status"] == "healthy"
    assert body["checks"]["database"]["pending_leave_requests"] == 1
    assert body["checks"]["websockets"]["max_connections"] == 1000


def test_health_degraded_when_database_fails(client, monkeypatch):
    class DownDatabase:
        async def command(self, name):
            raise ConnectionError("no primary")

    monkeypatch.setattr(db_module, "db", DownDatabase())

    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["checks"]["database"]["status"] == "unhealthy"


def test_liveness(client):
    assert client.get("/health/live").json()["status"] == "alive"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["success"] is False
    assert response.json()["error"]["code"] == "HTTP_EXCEPTION"
