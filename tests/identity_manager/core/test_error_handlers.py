"""Tests for API error bodies."""

from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from identity_manager.core.error_handlers import register_error_handlers
from identity_manager.core.exceptions import (
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


class Payload(BaseModel):
    name: str = Field(..., min_length=2)


def build_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("User", "id", 9)

    @app.get("/duplicate")
    async def duplicate():
        raise DuplicateResourceError("User", "email", "a@example.com")

    @app.get("/invalid")
    async def invalid():
        raise ValidationError({"first_name": "First name is required"})

    @app.get("/anonymous")
    async def anonymous():
        raise UnauthorizedError()

    @app.get("/forbidden")
    async def forbidden():
        raise ForbiddenError()

    @app.post("/payload")
    async def payload(body: Payload):
        return body

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    return app


client = TestClient(build_app(), raise_server_exceptions=False)


def test_not_found_body():
    response = client.get("/missing")

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == 404
    assert body["error"] == "Not Found"
    assert body["message"] == "User not found with id: '9'"
    assert body["path"] == "/missing"
    assert "timestamp" in body
    assert "errors" not in body


def test_duplicate_body():
    response = client.get("/duplicate")

    assert response.status_code == 409
    assert response.json()["message"] == "User already exists with email: 'a@example.com'"


def test_validation_error_lists_fields():
    response = client.get("/invalid")

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation Failed"
    assert body["errors"] == {"first_name": "First name is required"}


def test_unauthorized_sets_challenge_header():
    response = client.get("/anonymous")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"].startswith("Basic")


def test_forbidden():
    response = client.get("/forbidden")

    assert response.status_code == 403
    assert response.json()["message"] == "Access denied"


def test_request_validation_is_reported_as_bad_request():
    response = client.post("/payload", json={"name": "x"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation Failed"
    assert "name" in body["errors"]


def test_unexpected_error_hides_details():
    response = client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "An unexpected error occurred"
    assert "hunter2" not in response.text
