"""
Portcullis Backend - Response Envelope Tests
============================================

What we test:
    ✅ Success envelope keys (message/meta omitted when absent)
    ✅ Failure envelope hides error/stack in production
    ✅ ok()/fail() status codes, headers and JSON bodies
"""

import json
from datetime import datetime, timezone

from app.responses import fail, failure_body, ok, success_body
from app.schemas.user import UserResponse


def _raise_and_catch(exc: Exception) -> Exception:
    try:
        raise exc
    except Exception as caught:
        return caught


class TestSuccessBody:
    def test_minimal(self):
        assert success_body([1, 2]) == {"success": True, "data": [1, 2]}

    def test_with_message_and_meta(self):
        body = success_body({"id": 1}, message="Done", meta={"page": 1, "total": 3})
        assert body == {
            "success": True,
            "message": "Done",
            "data": {"id": 1},
            "meta": {"page": 1, "total": 3},
        }

    def test_none_data_is_kept(self):
        assert success_body(None) == {"success": True, "data": None}


class TestFailureBody:
    def test_production_never_leaks(self):
        error = _raise_and_catch(RuntimeError("db password is hunter2"))
        body = failure_body("An unexpected error occurred", error, production=True)
        assert body == {"success": False, "message": "An unexpected error occurred"}

    def test_non_production_includes_error_and_stack(self):
        error = _raise_and_catch(RuntimeError("boom"))
        body = failure_body("An unexpected error occurred", error, production=False)
        assert body["success"] is False
        assert body["error"] == "boom"
        assert "RuntimeError: boom" in body["stack"]
        assert "_raise_and_catch" in body["stack"]

    def test_without_error_only_message(self):
        assert failure_body("Not Found", production=False) == {
            "success": False,
            "message": "Not Found",
        }

    def test_empty_message_falls_back_to_type_name(self):
        body = failure_body("Bad", KeyError(), production=False)
        assert body["error"] == "KeyError"

    def test_uses_configured_environment_by_default(self, monkeypatch):
        from app.config import settings

        monkeypatch.setattr(settings, "node_env", "production")
        body = failure_body("x", ValueError("secret"))
        assert "error" not in body and "stack" not in body


class TestOkAndFail:
    def test_ok_serializes_models_by_alias(self):
        stamp = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
        user = UserResponse(id=1, email="a@b.co", created_at=stamp, updated_at=stamp)
        response = ok(user, "User retrieved successfully")
        body = json.loads(response.body)

        assert response.status_code == 200
        assert body["data"]["createdAt"].startswith("2026-01-15T12:00:00")
        assert "created_at" not in body["data"]
        assert body["message"] == "User retrieved successfully"

    def test_ok_custom_status_and_headers(self):
        response = ok({"id": 1}, status=201, headers={"X-Test": "1"})
        assert response.status_code == 201
        assert response.headers["X-Test"] == "1"

    def test_fail_status_and_headers(self):
        response = fail("Too many requests", 429, headers={"X-RateLimit-Remaining": "0"})
        assert response.status_code == 429
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert json.loads(response.body) == {"success": False, "message": "Too many requests"}
