"""
Portcullis Backend - Auth API Integration Tests
===============================================

What: /auth endpoints over the full app. Google is replaced by an
      httpx.MockTransport injected through the get_oauth_service dependency.

What we test:
    ✅ /auth/google: 503 when unconfigured, 302 to Google when configured
    ✅ Callback: missing code → 400, success creates the user and signs a JWT
    ✅ Profile fields our schema rejects are dropped; a bad email → 502
    ✅ Password login success and 401
    ✅ Strict rate limit: 6th request in the window → 429 envelope
"""

import httpx
import pytest

from app.config import settings
from app.main import app
from app.routes.auth import get_oauth_service
from app.security.tokens import verify_token
from app.services.auth_service import GOOGLE_TOKEN_URL, GoogleOAuthService


def _google_transport(**profile_overrides) -> httpx.MockTransport:
    profile = {
        "id": "google-77",
        "email": "Linus@Example.com",
        "name": "Linus",
        "picture": "https://lh3.googleusercontent.com/l.png",
        **profile_overrides,
    }

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url).startswith(GOOGLE_TOKEN_URL):
            return httpx.Response(200, json={"access_token": "at", "id_token": "idt"})
        return httpx.Response(200, json=profile)

    return httpx.MockTransport(handler)


@pytest.fixture
def google_configured(monkeypatch):
    monkeypatch.setattr(settings, "google_client_id", "client-id")
    monkeypatch.setattr(settings, "google_client_secret", "client-secret")


class TestGoogleRedirect:
    @pytest.mark.asyncio
    async def test_unconfigured(self, test_client):
        response = await test_client.get("/auth/google")
        assert response.status_code == 503
        assert response.json()["message"] == "Google OAuth is not configured"

    @pytest.mark.asyncio
    async def test_redirects_to_consent_screen(self, test_client, google_configured):
        response = await test_client.get("/auth/google")

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert "client_id=client-id" in location


class TestGoogleCallback:
    @pytest.mark.asyncio
    async def test_missing_code(self, test_client):
        response = await test_client.get("/auth/google/callback")
        assert response.status_code == 400
        assert response.json()["message"] == "No authorization code provided"

    @pytest.mark.asyncio
    async def test_signs_in_new_user(self, test_client, database, google_configured):
        app.dependency_overrides[get_oauth_service] = lambda: GoogleOAuthService(
            transport=_google_transport()
        )

        response = await test_client.get("/auth/google/callback", params={"code": "abc"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Authentication successful"
        assert body["data"]["user"]["email"] == "linus@example.com"
        assert body["data"]["user"]["name"] == "Linus"
        claims = verify_token(body["data"]["token"])
        assert claims["id"] == body["data"]["user"]["id"]

        me = await test_client.get(
            "/users/me", headers={"Authorization": f"Bearer {body['data']['token']}"}
        )
        assert me.json()["data"]["avatar"] == "https://lh3.googleusercontent.com/l.png"

    @pytest.mark.asyncio
    async def test_rejected_picture_is_dropped(self, test_client, database, google_configured):
        app.dependency_overrides[get_oauth_service] = lambda: GoogleOAuthService(
            transport=_google_transport(picture="data:image/png;base64,AAA")
        )

        response = await test_client.get("/auth/google/callback", params={"code": "abc"})

        assert response.status_code == 200
        user_id = response.json()["data"]["user"]["id"]
        record = await test_client.get(f"/users/{user_id}")
        assert record.json()["data"]["avatar"] is None

    @pytest.mark.asyncio
    async def test_overlong_name_is_dropped(self, test_client, database, google_configured):
        app.dependency_overrides[get_oauth_service] = lambda: GoogleOAuthService(
            transport=_google_transport(name="N" * 300)
        )

        response = await test_client.get("/auth/google/callback", params={"code": "abc"})

        assert response.status_code == 200
        assert response.json()["data"]["user"]["name"] is None

    @pytest.mark.asyncio
    async def test_unusable_email_is_bad_gateway(self, test_client, database, google_configured):
        app.dependency_overrides[get_oauth_service] = lambda: GoogleOAuthService(
            transport=_google_transport(email="not-an-email")
        )

        response = await test_client.get("/auth/google/callback", params={"code": "abc"})

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to fetch Google user"


class TestPasswordLogin:
    @pytest.mark.asyncio
    async def test_success(self, test_client, database):
        await test_client.post(
            "/users", json={"email": "ada@example.com", "name": "Ada", "password": "secret1"}
        )

        response = await test_client.post(
            "/auth/login", json={"email": "ADA@example.com", "password": "secret1"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert set(data) == {"token", "user"}
        assert data["user"]["email"] == "ada@example.com"
        assert verify_token(data["token"])["email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, database):
        await test_client.post("/users", json={"email": "ada@example.com", "password": "secret1"})

        response = await test_client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "secret2"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_auth_rate_limit(test_client):
    for remaining in (4, 3, 2, 1, 0):
        response = await test_client.get("/auth/google/callback")
        assert response.status_code == 400
        assert response.headers["X-RateLimit-Remaining"] == str(remaining)

    response = await test_client.get("/auth/google/callback")

    assert response.status_code == 429
    assert response.json()["message"] == "Too many requests, please try again later"
    assert response.headers["X-RateLimit-Remaining"] == "0"
