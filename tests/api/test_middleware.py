"""Tests for RequestIDMiddleware."""

import pytest
from uuid import UUID
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.testclient import TestClient

from api.middleware import RequestIDMiddleware


@pytest.fixture
def app():
    """Minimal FastAPI app with RequestIDMiddleware."""
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/ping")
    async def ping(request: Request):
        return JSONResponse({"request_id": request.state.request_id})

    return app


@pytest.fixture
def client(app):
    return TestClient(app)


class TestRequestIDMiddleware:
    """Tests for RequestIDMiddleware."""

    def test_response_has_request_id_header(self, client):
        """Response includes a UUID X-Request-ID header."""
        response = client.get("/ping")
        UUID(response.headers["X-Request-ID"])

    def test_request_state_matches_header(self, client):
        response = client.get("/ping")
        assert response.headers["X-Request-ID"] == response.json()["request_id"]

    def test_each_request_gets_unique_id(self, client):
        r1 = client.get("/ping")
        r2 = client.get("/ping")
        assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]

    def test_caller_supplied_id_kept(self, client):
        response = client.get("/ping", headers={"X-Request-ID": "trace-abc"})
        assert response.headers["X-Request-ID"] == "trace-abc"
        assert response.json()["request_id"] == "trace-abc"
