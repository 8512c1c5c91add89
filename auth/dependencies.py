"""
auth/dependencies.py -- The auth gate and its FastAPI Depends() helper.

Two header forms carry the bearer token, checked in priority order:
  1. Authorization: Bearer <token> -- API clients.
  2. x-auth-token: <token>          -- legacy clients.

A missing header and a header in the wrong format are the same "no
credential". Any verification failure is the same 401 as no credential.

authenticate_headers() is the pure gate: a function of the header values
and the TokenService (which holds the secret and the clock). It does no
persistence I/O -- it resolves a user id, not a User.
get_current_user_id() wraps it as a FastAPI dependency.

Layer rule: no imports from api/ or social/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.tokens import TokenService
from core.errors import Unauthorized
from core.ids import EntityId

_BEARER_PREFIX = "Bearer "


def extract_token(authorization: str | None, auth_token: str | None = None) -> str | None:
    """Return the raw token from the request headers, or None."""
    if authorization:
        if authorization.startswith(_BEARER_PREFIX):
            token = authorization[len(_BEARER_PREFIX) :].strip()
            if token:
                return token
        # A present but malformed Authorization header is not a credential.
        return None
    if auth_token and auth_token.strip():
        return auth_token.strip()
    return None


def authenticate_headers(
    tokens: TokenService,
    authorization: str | None,
    auth_token: str | None = None,
) -> EntityId:
    """Resolve the acting user id or raise Unauthorized."""
    token = extract_token(authorization, auth_token)
    if token is None:
        raise Unauthorized()
    user_id = tokens.verify(token)
    if user_id is None:
        raise Unauthorized()
    return user_id


def get_current_user_id(request: Request) -> EntityId:
    """Require authentication. Raises Unauthorized (HTTP 401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user_id: EntityId = Depends(get_current_user_id)): ...
    """
    user_id = authenticate_headers(
        request.app.state.tokens,
        request.headers.get("Authorization"),
        request.headers.get("x-auth-token"),
    )
    request.state.user_id = user_id
    return user_id
