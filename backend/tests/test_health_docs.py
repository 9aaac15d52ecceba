"""
Portcullis Backend - Health, Docs and Cross-Cutting Header Tests
================================================================

What we test:
    ✅ /health shape
    ✅ /api-specs serves the OpenAPI document
    ✅ /llms.txt renders it as Markdown
    ✅ Security headers and X-Request-ID on every response
    ✅ Unknown routes answer with the failure envelope
    ✅ Middleware order: only non-raising stages sit outside the error handler
"""

import pytest

from app.main import app
from app.routes.docs import openapi_to_markdown


@pytest.mark.asyncio
async def test_health(test_client):
    response = await test_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "timestamp" in body
    assert "X-RateLimit-Limit" not in response.headers


@pytest.mark.asyncio
async def test_openapi_document(test_client):
    response = await test_client.get("/api-specs")

    assert response.status_code == 200
    spec = response.json()
    assert spec["info"]["title"] == "Portcullis API"
    assert spec["servers"] == [{"url": "http://localhost:3000"}]
    assert {"/users", "/users/me", "/users/{user_id}", "/auth/login", "/health"} <= set(
        spec["paths"]
    )
    assert "/llms.txt" not in spec["paths"]


@pytest.mark.asyncio
async def test_llms_txt(test_client):
    response = await test_client.get("/llms.txt")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    text = response.text
    assert text.startswith("# Portcullis API")
    assert "### POST /users" in text
    assert "### GET /auth/google/callback" in text


def test_markdown_renderer():
    spec = {
        "info": {"title": "Demo", "version": "2.0"},
        "paths": {
            "/things/{id}": {
                "get": {
                    "summary": "Get a thing",
                    "parameters": [
                        {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}
                    ],
                    "responses": {"200": {"description": "OK"}},
                }
            }
        },
        "components": {
            "schemas": {
                "Thing": {
                    "properties": {
                        "id": {"type": "integer"},
                        "tags": {"type": "array", "items": {"type": "string"}},
                    },
                    "required": ["id"],
                }
            }
        },
    }

    text = openapi_to_markdown(spec)

    assert text.splitlines()[0] == "# Demo 2.0"
    assert "### GET /things/{id}" in text
    assert "- `id` (path, string, required)" in text
    assert "- `200`: OK" in text
    assert "- `id`: integer (required)" in text
    assert "- `tags`: array of string" in text


@pytest.mark.asyncio
async def test_security_headers(test_client):
    response = await test_client.get("/health")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    # NODE_ENV=test: CSP on, HSTS production only
    assert "Content-Security-Policy" in response.headers
    assert "Strict-Transport-Security" not in response.headers


@pytest.mark.asyncio
async def test_request_id_generated_and_echoed(test_client):
    generated = await test_client.get("/health")
    assert generated.headers["X-Request-ID"]

    echoed = await test_client.get("/health", headers={"X-Request-ID": "trace-42"})
    assert echoed.headers["X-Request-ID"] == "trace-42"


@pytest.mark.asyncio
async def test_unknown_route(test_client):
    response = await test_client.get("/nope")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_error_handler_wraps_everything_that_can_raise():
    order = [m.cls.__name__ for m in app.user_middleware]

    assert order == [
        "CORSMiddleware",
        "GZipMiddleware",
        "RequestIDMiddleware",
        "RequestLoggingMiddleware",
        "SecurityHeadersMiddleware",
        "ErrorHandlerMiddleware",
        "RateLimitMiddleware",
    ]
