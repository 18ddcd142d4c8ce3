from unittest.mock import patch

from healthai.services.inference_gateway import inference_gateway


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert "inference_configured" in data


def test_health_reports_missing_key(client):
    with patch.object(inference_gateway, "api_key", ""):
        data = client.get("/api/health").json()
    assert data["inference_configured"] is False


def test_first_request_gets_session_cookie(client):
    response = client.get("/api/form")
    assert response.status_code == 200
    assert "session_id" in response.cookies
