def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200
    payload = ready.json()
    assert payload["database"]["ok"] is True
    assert payload["database"]["schema_ok"] is True
    assert payload["database"]["missing_tables"] == []


def test_security_headers_are_set(client):
    response = client.get("/api/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_oversized_bodies_are_rejected(client):
    response = client.post(
        "/api/assignments",
        content=b" " * 1_000_001,
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 413
    assert response.json()["details"]["max_bytes"] > 0
