from fastapi.testclient import TestClient

from identity_manager.main import app

client = TestClient(app)


def test_health_endpoint():
    """Test that the /health endpoint returns the correct response."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"status": "healthy", "service": "identity_manager"}


def test_static_assets_are_public():
    response = client.get("/static/style.css")

    assert response.status_code == 200
    assert "text/css" in response.headers["content-type"]
