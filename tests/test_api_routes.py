"""
tests/test_api_routes.py -- Integration tests for the DevConnect REST API.

These tests exercise the full stack: FastAPI routing -> auth gate ->
flow functions -> UserStore/SocialStore -> response model serialization.
Unit tests of the flows live in test_accounts/test_profiles/test_posts;
these check the HTTP contract on top of them: status codes, the error
envelope, header handling and JSON field names.

Fixtures used (from conftest.py):
  - api_client: (client, tokens) -- TestClient over the real app
  - signup: factory registering an account through the API -> (token, user_id)
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

import api.limiter
from api.limiter import limiter
from api.main import app
from auth.tokens import TokenService
from core.config import Settings


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestAccounts:
    def test_register_returns_token_and_user(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, tokens = api_client
        resp = client.post(
            "/api/v1/users", json={"name": "Ada", "email": "ada-api@example.com", "password": "secret123"}
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert tokens.verify(data["token"]) == uuid.UUID(data["user"]["id"])
        assert "password" not in data["user"] and "password_hash" not in data["user"]
        assert data["user"]["avatar"].startswith("https://www.gravatar.com/avatar/")
        assert resp.headers["cache-control"] == "no-store"

    def test_register_duplicate_is_409(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        body = {"name": "Ada", "email": "dup@example.com", "password": "secret123"}
        assert client.post("/api/v1/users", json=body).status_code == 200
        resp = client.post("/api/v1/users", json=body)
        assert resp.status_code == 409
        assert resp.json()["error"]["message"] == "User already exists!"

    def test_register_reports_every_field(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        resp = client.post("/api/v1/users", json={"email": "nope"})
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "validation_error"
        assert {v["field"] for v in error["violations"]} == {"name", "email", "password"}

    def test_login_and_me(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        client.post("/api/v1/users", json={"name": "Ada", "email": "login@example.com", "password": "secret123"})
        resp = client.post("/api/v1/auth", json={"email": "login@example.com", "password": "secret123"})
        assert resp.status_code == 200, resp.text
        me = client.get("/api/v1/auth", headers=_bearer(resp.json()["token"]))
        assert me.status_code == 200
        assert me.json()["email"] == "login@example.com"

    def test_login_failures_look_the_same(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        client.post("/api/v1/users", json={"name": "Ada", "email": "same@example.com", "password": "secret123"})
        wrong = client.post("/api/v1/auth", json={"email": "same@example.com", "password": "nope-nope"})
        unknown = client.post("/api/v1/auth", json={"email": "ghost@example.com", "password": "secret123"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()


class TestAuthGate:
    def test_missing_token_is_401(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        resp = client.get("/api/v1/auth")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_invalid_token_is_401(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        assert client.get("/api/v1/posts", headers=_bearer("forged.token.value")).status_code == 401

    def test_legacy_header_accepted(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        token, user_id = signup()
        resp = client.get("/api/v1/auth", headers={"x-auth-token": token})
        assert resp.status_code == 200
        assert resp.json()["id"] == user_id

    def test_token_for_deleted_user(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        token, _user_id = signup()
        assert client.delete("/api/v1/profile", headers=_bearer(token)).json() == {"message": "User removed!"}
        assert client.get("/api/v1/auth", headers=_bearer(token)).status_code == 404


class TestProfileRoutes:
    def test_profile_lifecycle(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        token, user_id = signup(name="Profile Owner")
        headers = _bearer(token)

        assert client.get("/api/v1/profile/me", headers=headers).status_code == 404

        resp = client.post(
            "/api/v1/profile",
            json={"status": "Developer", "skills": "python, fastapi", "bio": "Hi", "twitter": "https://t.co/x"},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["skills"] == ["python", "fastapi"]
        assert data["social"]["twitter"] == "https://t.co/x"
        assert data["user"] == {"id": user_id, "name": "Profile Owner", "avatar": data["user"]["avatar"]}

        resp = client.post("/api/v1/profile", json={"status": "Senior", "skills": "go"}, headers=headers)
        assert resp.json()["bio"] == "Hi"
        assert resp.json()["status"] == "Senior"

        public = client.get(f"/api/v1/profile/user/{user_id}")
        assert public.status_code == 200
        assert public.json()["status"] == "Senior"
        assert any(p["id"] == data["id"] for p in client.get("/api/v1/profile").json())

    def test_upsert_requires_status_and_skills(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        token, _user_id = signup()
        resp = client.post("/api/v1/profile", json={}, headers=_bearer(token))
        assert resp.status_code == 422
        assert {v["field"] for v in resp.json()["error"]["violations"]} == {"status", "skills"}

    def test_public_profile_lookup_errors(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        unknown = client.get(f"/api/v1/profile/user/{uuid.uuid4().hex}")
        malformed = client.get("/api/v1/profile/user/not-an-id")
        assert unknown.status_code == malformed.status_code == 404
        assert unknown.json()["error"]["code"] == "not_found"
        assert malformed.json()["error"]["code"] == "malformed_id"

    def test_experience_and_education(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        token, _user_id = signup()
        headers = _bearer(token)
        client.post("/api/v1/profile", json={"status": "Dev", "skills": "python"}, headers=headers)

        resp = client.put(
            "/api/v1/profile/experience",
            json={"title": "Engineer", "company": "Acme", "from": "2020-01-01", "current": True},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text
        entry = resp.json()["experience"][0]
        assert entry["from"] == "2020-01-01" and entry["current"] is True

        soft = client.delete(f"/api/v1/profile/experience/{uuid.uuid4().hex}", headers=headers)
        assert soft.status_code == 200
        assert soft.json()["removed"] is False
        assert soft.json()["message"] == "This experience not found!"

        removed = client.delete(f"/api/v1/profile/experience/{entry['id']}", headers=headers)
        assert removed.json()["removed"] is True
        assert removed.json()["profile"]["experience"] == []

        resp = client.put(
            "/api/v1/profile/education",
            json={"school": "MIT", "degree": "BSc", "fieldofstudy": "CS", "from": "2010-09-01"},
            headers=headers,
        )
        assert resp.json()["education"][0]["school"] == "MIT"

    def test_experience_validation(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        token, _user_id = signup()
        resp = client.put("/api/v1/profile/experience", json={"company": "Acme"}, headers=_bearer(token))
        assert resp.status_code == 422
        assert {v["field"] for v in resp.json()["error"]["violations"]} == {"title", "from"}


class TestPostRoutes:
    def test_post_like_comment_flow(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        owner_token, owner_id = signup(name="Owner")
        reader_token, reader_id = signup(name="Reader")

        created = client.post("/api/v1/posts", json={"text": "Hello"}, headers=_bearer(owner_token))
        assert created.status_code == 200, created.text
        post = created.json()
        assert post["user"] == owner_id and post["name"] == "Owner"

        likes = client.put(f"/api/v1/posts/like/{post['id']}", headers=_bearer(reader_token))
        assert likes.json() == [{"user": reader_id}]
        again = client.put(f"/api/v1/posts/like/{post['id']}", headers=_bearer(reader_token))
        assert again.status_code == 400
        assert again.json()["error"]["message"] == "Post already liked!"

        assert client.put(f"/api/v1/posts/unlike/{post['id']}", headers=_bearer(reader_token)).json() == []
        not_liked = client.put(f"/api/v1/posts/unlike/{post['id']}", headers=_bearer(reader_token))
        assert not_liked.status_code == 400
        assert not_liked.json()["error"]["code"] == "not_liked"

        commented = client.post(
            f"/api/v1/posts/comment/{post['id']}", json={"text": "Nice"}, headers=_bearer(reader_token)
        ).json()
        comment_id = commented["comments"][0]["id"]
        forbidden = client.delete(f"/api/v1/posts/comment/{post['id']}/{comment_id}", headers=_bearer(owner_token))
        assert forbidden.status_code == 403
        assert forbidden.json()["error"]["message"] == "User not authorized!"
        removed = client.delete(f"/api/v1/posts/comment/{post['id']}/{comment_id}", headers=_bearer(reader_token))
        assert removed.json()["comments"] == []

    def test_delete_post_ownership(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        owner_token, _owner_id = signup()
        other_token, _other_id = signup()
        post_id = client.post("/api/v1/posts", json={"text": "Mine"}, headers=_bearer(owner_token)).json()["id"]

        assert client.delete(f"/api/v1/posts/{post_id}", headers=_bearer(other_token)).status_code == 403
        resp = client.delete(f"/api/v1/posts/{post_id}", headers=_bearer(owner_token))
        assert resp.json() == {"message": "Post removed!"}
        assert client.get(f"/api/v1/posts/{post_id}", headers=_bearer(owner_token)).status_code == 404

    def test_malformed_post_id(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        token, _user_id = signup()
        resp = client.get("/api/v1/posts/not-an-id", headers=_bearer(token))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "malformed_id"

    def test_empty_text_rejected(self, api_client: tuple[TestClient, TokenService], signup) -> None:
        client, _tokens = api_client
        token, _user_id = signup()
        resp = client.post("/api/v1/posts", json={"text": ""}, headers=_bearer(token))
        assert resp.status_code == 422


class TestPasswordLength:
    """bcrypt's 72-byte limit is enforced in bytes, not characters."""

    def test_register_multibyte_password_over_limit_is_422(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        resp = client.post("/api/v1/users", json={"name": "Ada", "email": "mb@example.com", "password": "\u00e9" * 40})
        assert resp.status_code == 422, resp.text
        assert [v["field"] for v in resp.json()["error"]["violations"]] == ["password"]

    def test_login_multibyte_password_over_limit_is_401(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        client.post("/api/v1/users", json={"name": "Ada", "email": "mb-login@example.com", "password": "secret123"})
        known = client.post("/api/v1/auth", json={"email": "mb-login@example.com", "password": "\u00e9" * 40})
        unknown = client.post("/api/v1/auth", json={"email": "mb-ghost@example.com", "password": "\u00e9" * 40})
        assert known.status_code == unknown.status_code == 401
        assert known.json()["error"]["code"] == unknown.json()["error"]["code"] == "bad_credentials"


class TestRateLimits:
    """Login and registration limits come from Settings and are enforced per client."""

    @pytest.fixture(autouse=True)
    def _tight_limits(self, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
        settings = Settings(debug=True, login_rate_limit="2/minute", register_rate_limit="2/minute")
        monkeypatch.setattr(api.limiter, "get_settings", lambda: settings)
        limiter.reset()
        yield
        limiter.reset()

    def test_register_limit_returns_429_envelope(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        statuses = []
        for _ in range(3):
            email = f"{uuid.uuid4().hex[:10]}@example.com"
            resp = client.post("/api/v1/users", json={"name": "Ada", "email": email, "password": "secret123"})
            statuses.append(resp.status_code)
        assert statuses == [200, 200, 429]
        assert resp.json()["error"]["code"] == "rate_limited"
        assert resp.headers["retry-after"] == "60"

    def test_login_limit_applies_to_failed_attempts(self, api_client: tuple[TestClient, TokenService]) -> None:
        client, _tokens = api_client
        body = {"email": "brute@example.com", "password": "guess-guess"}
        statuses = [client.post("/api/v1/auth", json=body).status_code for _ in range(3)]
        assert statuses == [401, 401, 429]


class TestInternalError:
    def test_unexpected_exception_is_generic_500(
        self, api_client: tuple[TestClient, TokenService], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The envelope carries no exception detail; the traceback goes to the log only."""

        class FailingStore:
            def list_profiles(self):
                raise RuntimeError("disk on fire")

        monkeypatch.setattr(app.state, "social_store", FailingStore())
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.get("/api/v1/profile")
        assert resp.status_code == 500
        assert resp.json() == {
            "error": {
                "code": "internal_error",
                "message": "An unexpected error occurred.",
                "detail": None,
                "violations": None,
            }
        }
        assert "disk on fire" not in resp.text
