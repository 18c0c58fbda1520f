"""Application shell: health, docs, configuration."""

from fastapi.testclient import TestClient

from feedback_api.config import Settings
from feedback_api.main import create_app


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Server is running"
    assert "timestamp" in body


def test_openapi_schema(client):
    response = client.get("/api-docs/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    assert schema["info"]["title"] == "BNCC Feedback API"
    assert "/api/v1/feedback" in schema["paths"]
    assert "/api/v1/feedback/{id}" in schema["paths"]


def test_docs_page(client):
    response = client.get("/api-docs")
    assert response.status_code == 200
    assert "swagger" in response.text.lower()


def test_configurable_prefix(tmp_path):
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'other.db'}",
        api_prefix="/svc/",
        api_version="v2",
    )
    assert settings.feedback_path == "/svc/v2/feedback"

    with TestClient(create_app(settings)) as c:
        assert c.get("/svc/v2/feedback").status_code == 200
        assert c.get("/api/v1/feedback").status_code == 404


def test_settings_production_flag():
    assert Settings(environment="Production").is_production
    assert not Settings(environment="development").is_production


def test_limit_cap_is_documented(client):
    schema = client.get("/api-docs/openapi.json").json()
    params = schema["paths"]["/api/v1/feedback"]["get"]["parameters"]
    limit = next(p for p in params if p["name"] == "limit")
    assert limit["schema"]["maximum"] == 100
    assert "at most 100" in limit["description"]


def test_trailing_slash_routes_hidden_from_docs(client):
    schema = client.get("/api-docs/openapi.json").json()
    assert "/api/v1/feedback/" not in schema["paths"]
