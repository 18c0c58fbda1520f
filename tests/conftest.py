"""Shared fixtures: an app on a throwaway SQLite database per test."""

import pytest
from fastapi.testclient import TestClient

from feedback_api.config import Settings
from feedback_api.main import create_app

BASE = "/api/v1/feedback"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'feedback.db'}",
        environment="test",
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # entering the context runs the lifespan, which creates the tables
    with TestClient(app) as c:
        yield c


@pytest.fixture
def valid_payload():
    return {
        "name": "John Doe",
        "email": "john@x.com",
        "eventName": "Workshop",
        "division": "LnT",
        "rating": 5,
    }


@pytest.fixture
def create_feedback(client, valid_payload):
    """Create a feedback through the API and return its `data` payload."""

    def _create(**overrides):
        response = client.post(BASE, json={**valid_payload, **overrides})
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


def error_fields(response) -> list:
    return [e["field"] for e in response.json()["errors"]]
