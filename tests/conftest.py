"""
tests/conftest.py -- Shared test fixtures for DevConnect.

This module provides:
  - hasher / tokens: low-cost PasswordHasher and a TokenService with a fixed secret
  - user_store / social_store: fresh in-memory stores for unit tests
  - make_user: creates a registered user directly through the store
  - api_client: TestClient over the real app with a patched lifespan

Design: the API fixture uses named shared-memory SQLite URIs (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

Environment must be set before any api/ import: DEBUG so get_settings()
auto-generates SECRET_KEY, ALLOWED_HOSTS so TrustedHostMiddleware accepts
TestClient's "testserver" host, and generous rate limits so the suite never
trips slowapi.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("REGISTER_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.avatar import gravatar_url
from auth.models import User
from auth.store import UserStore
from auth.tokens import PasswordHasher, TokenService
from social.store import SocialStore

TEST_SECRET = "test-secret-key-for-devconnect-0123456789abcdef"

# bcrypt's minimum cost; production uses Settings.bcrypt_rounds.
_TEST_ROUNDS = 4


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=_TEST_ROUNDS)


@pytest.fixture
def token_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def tokens(token_secret: str) -> TokenService:
    return TokenService(token_secret, expire_seconds=3600)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def social_store() -> Generator[SocialStore, None, None]:
    store = SocialStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def make_user(user_store: UserStore, hasher: PasswordHasher) -> Callable[..., User]:
    """Return a factory that stores a user and returns the stored record."""

    def _make(name: str = "Ada Lovelace", email: str | None = None, password: str = "secret123") -> User:
        email = email or f"{uuid.uuid4().hex[:8]}@example.com"
        user_id = user_store.create_user(
            User(name=name, email=email, avatar=gravatar_url(email), password_hash=hasher.hash(password))
        )
        return user_store.get_by_id(user_id)

    return _make


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, SocialStore]:
    """Create isolated named shared-memory SQLite stores for test isolation."""
    users_url = f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true"
    social_url = f"sqlite:///file:test_social_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(users_url), SocialStore(social_url)


def _patch_lifespan(user_store: UserStore, social_store: SocialStore, hasher: PasswordHasher, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test services into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.social_store = social_store
        app.state.hasher = hasher
        app.state.tokens = tokens
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(hasher: PasswordHasher) -> Generator[tuple[TestClient, TokenService], None, None]:
    """Yield (client, tokens) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores. Each
    test module gets its own databases.
    """
    user_store, social_store = _make_test_stores(uuid.uuid4().hex[:12])
    tokens = TokenService(TEST_SECRET, expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(user_store, social_store, hasher, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, tokens

    user_store.close()
    social_store.close()


@pytest.fixture
def signup(api_client: tuple[TestClient, TokenService]) -> Callable[..., tuple[str, str]]:
    """Return a factory that registers an account through the API -> (token, user_id)."""
    client, _tokens = api_client

    def _signup(name: str = "Grace Hopper", password: str = "secret123") -> tuple[str, str]:
        email = f"{uuid.uuid4().hex[:10]}@example.com"
        resp = client.post("/api/v1/users", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        return data["token"], data["user"]["id"]

    return _signup
