from fastapi.testclient import TestClient
from creator_analytics.main import app
from creator_analytics.core.exceptions import ResourceNotFoundError
import pytest

client = TestClient(app)
ADMIN = {"X-Admin-User-Id": "admin_1"}


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert "code" in data
    assert data["code"] == "HTTP_ERROR"


def test_405_method_not_allowed():
    response = client.put("/live")
    assert response.status_code == 405
    assert response.json()["code"] == "HTTP_ERROR"


def test_validation_error_structure():
    # Unknown event type on the public tracking endpoint
    response = client.post("/api/v1/events", json={"eventType": "teleport"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert data["error"] == "Input validation failed"
    assert len(data["details"]) > 0


def test_missing_admin_header_is_401():
    response = client.get("/api/v1/admin/pipeline/stats")
    assert response.status_code == 401
    assert response.json()["code"] == "AUTHENTICATION_FAILED"


def test_database_not_connected_is_502():
    response = client.get("/api/v1/admin/pipeline/stats", headers=ADMIN)
    assert response.status_code == 502
    assert response.json()["code"] == "EXTERNAL_SERVICE_ERROR"


def test_custom_exception():
    @app.get("/test-custom-error")
    def trigger_custom_error():
        raise ResourceNotFoundError(message="Item not found")

    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["error"] == "Item not found"


def test_unhandled_exception_is_500():
    @app.get("/test-unhandled-error")
    def trigger_unhandled_error():
        raise KeyError("missing")

    quiet_client = TestClient(app, raise_server_exceptions=False)
    response = quiet_client.get("/test-unhandled-error")
    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"


@pytest.mark.parametrize("path", ["/", "/live"])
def test_health_routes_without_database(path):
    response = client.get(path)
    assert response.status_code == 200
    assert "X-Process-Time" in response.headers


def test_health_reports_unhealthy_database():
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["checks"]["database"] == "unhealthy"
