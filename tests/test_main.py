"""
Tests for the main module and health endpoint.
"""


def test_read_root(client):
    """Test the root endpoint returns the expected response."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Health Nexus Intake"}


def test_health_check_returns_success(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["data"]["status"] == "healthy"
    assert "Health Nexus Intake" in data["data"]["message"]
    assert data["data"]["upload_backend"] == "simulated"
    assert data["message"] == "Health check successful"


def test_lifespan_installs_idle_form(client):
    """The lifespan wires a controller so the form is served from startup."""
    response = client.get("/api/v1/records/form")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "idle"
    assert data["phone_number"] == ""
    assert client.app.state.record_controller.is_submitting is False
