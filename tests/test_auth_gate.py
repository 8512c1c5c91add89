"""
tests/test_auth_gate.py -- Unit tests for the auth gate in auth/dependencies.py.

The gate is a pure function of the header values and the TokenService, so
these tests need no app, no database and no HTTP client.
"""

from __future__ import annotations

import uuid

import pytest

from auth.dependencies import authenticate_headers, extract_token
from auth.tokens import TokenService
from core.errors import Unauthorized


class TestExtractToken:
    def test_bearer_header(self) -> None:
        assert extract_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_legacy_header(self) -> None:
        assert extract_token(None, "abc.def.ghi") == "abc.def.ghi"

    def test_authorization_wins_over_legacy_header(self) -> None:
        assert extract_token("Bearer first", "second") == "first"

    @pytest.mark.parametrize("header", ["", "Basic dXNlcjpwYXNz", "Bearer", "Bearer ", "bearer abc", "abc"])
    def test_malformed_authorization_is_no_credential(self, header: str) -> None:
        assert extract_token(header or None) is None

    def test_malformed_authorization_does_not_fall_back(self) -> None:
        assert extract_token("Token abc", "legacy") is None

    def test_absent(self) -> None:
        assert extract_token(None, None) is None


class TestAuthenticateHeaders:
    def test_valid_token_resolves_user_id(self, tokens: TokenService) -> None:
        user_id = uuid.uuid4()
        assert authenticate_headers(tokens, f"Bearer {tokens.issue(user_id)}") == user_id

    def test_valid_legacy_token_resolves_user_id(self, tokens: TokenService) -> None:
        user_id = uuid.uuid4()
        assert authenticate_headers(tokens, None, tokens.issue(user_id)) == user_id

    def test_no_token_is_unauthorized(self, tokens: TokenService) -> None:
        with pytest.raises(Unauthorized):
            authenticate_headers(tokens, None)

    def test_invalid_token_is_unauthorized(self, tokens: TokenService) -> None:
        with pytest.raises(Unauthorized):
            authenticate_headers(tokens, "Bearer not-a-token")

    def test_failures_are_indistinguishable(self, tokens: TokenService) -> None:
        """Missing and invalid credentials produce the same error code and message."""
        with pytest.raises(Unauthorized) as missing:
            authenticate_headers(tokens, None)
        with pytest.raises(Unauthorized) as invalid:
            authenticate_headers(tokens, "Bearer forged.token.value")
        assert (missing.value.code, missing.value.message) == (invalid.value.code, invalid.value.message)
