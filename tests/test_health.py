from app.routers import health


def test_health_reports_database_up(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["service"] == "api"
    assert body["status"] == "ok"
    assert body["database"] == "up"
    assert body["timestamp"]


def test_health_reports_database_down(client, monkeypatch):
    monkeypatch.setattr(health, "database_is_up", lambda: False)

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["database"] == "down"


def test_root(client):
    assert client.get("/").json() == {"status": "Backend running"}


def test_responses_carry_security_headers(client):
    response = client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert response.headers["Referrer-Policy"] == "no-referrer"
