from fastapi.testclient import TestClient
from poscrm.main import app


def test_health():
    client = TestClient(app)
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.json()["service"] == "poscrm"


def test_liveness():
    client = TestClient(app)
    assert client.get('/health/live').json() == {"status": "alive"}


def test_readiness_checks_database():
    client = TestClient(app)
    body = client.get('/health/ready').json()
    assert body["checks"]["database:connectivity"]["status"] == "pass"


def test_unknown_route():
    client = TestClient(app)
    resp = client.get('/api/nothing-here')
    assert resp.status_code == 404
    assert resp.json() == {"message": "Route not found"}
