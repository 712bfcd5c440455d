"""In-process tests for the FastAPI application with FastAPI's TestClient."""
import pytest

pytest.importorskip("fastapi")
pytest.importorskip("uvicorn")

from fastapi.testclient import TestClient  # noqa: E402

from bolt_web.app import create_app  # noqa: E402
from bolt_web.generator import CANNED_RESPONSES  # noqa: E402


@pytest.fixture
def client(router):
    return TestClient(create_app(router))


def test_chat_endpoint_returns_canned_response(client):
    """Posting to /api/chat should return the canned reply and files."""

    response = client.post("/api/chat", json={"message": "Build a landing page", "projectId": "demo"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["response"] == CANNED_RESPONSES[0]
    assert list(payload["files"]) == ["index.html"]
    assert "Build a landing page" in payload["files"]["index.html"]
    assert payload["preview"] == "Project preview would appear here"


def test_invalid_json_uses_the_error_payload(client):
    response = client.post("/api/chat", content=b"{", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON"}


def test_non_json_content_type_is_still_parsed(client):
    response = client.post(
        "/api/chat", content=b'{"message": "react"}', headers={"Content-Type": "text/plain"}
    )

    assert response.status_code == 200
    assert "App.js" in response.json()["files"]


def test_wrong_method_is_not_found_rather_than_405(client):
    response = client.get("/api/chat")

    assert response.status_code == 404
    assert response.text == "Not Found"
    assert response.headers["access-control-allow-origin"] == "*"


def test_docs_are_not_exposed(client):
    for path in ("/docs", "/redoc", "/openapi.json"):
        assert client.get(path).status_code == 404


def test_preflight_short_circuits_routing(client):
    response = client.options("/api/chat")

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
