"""Tests validating API CORS configuration."""

from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import app


client = TestClient(app)


def test_preflight_succeeds_for_allowed_origin() -> None:
    response = client.options(
        "/storage/folders",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-credentials"] == "true"


def test_preflight_is_rejected_for_disallowed_origin() -> None:
    response = client.options(
        "/storage/folders",
        headers={
            "Origin": "http://malicious.local",
            "Access-Control-Request-Method": "DELETE",
        },
    )

    assert response.status_code == 400
    assert "access-control-allow-origin" not in response.headers


def test_comma_separated_origins_are_split() -> None:
    settings = Settings(cors_allowed_origins=" http://a.test , http://b.test,, ")

    assert settings.resolved_cors_allowed_origins == ["http://a.test", "http://b.test"]
