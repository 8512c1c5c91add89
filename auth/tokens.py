"""
auth/tokens.py -- Password hashing and JWT issue/verify.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry {"user": {"id": <hex>}}, "iat"
       and "exp". Verification returns None on any failure (bad signature,
       malformed payload, expired) -- the auth gate turns that into a single
       uniform 401 and never says which check failed.

       Expiry is checked here against an injected clock rather than by jose,
       so verification is a pure function of (token, secret, clock) and
       tests can move time without sleeping.

  TTL: expressed in seconds everywhere (Settings.token_expire_seconds).

  Passwords: bcrypt directly (no passlib wrapper) with a fixed work factor.
       The dummy hash enables timing equalization in the login flow so
       response time does not reveal whether an email is registered.

Both services are plain objects built once in the FastAPI lifespan from
Settings and attached to app.state. Nothing in this module reads settings
at import time.

Layer rule: no imports from api/ or social/.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import bcrypt
from jose import JWTError, jwt

from core.errors import MalformedIdentifier
from core.ids import EntityId, parse_id, to_db

logger = logging.getLogger("devconnect.auth")

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


class PasswordHasher:
    """One-way salted bcrypt hash with a fixed cost factor.

    hash() draws a fresh salt per call, so two hashes of the same password
    differ. verify() uses the salt embedded in the stored hash; bcrypt's
    checkpw compares in constant time.

    bcrypt only accepts MAX_PASSWORD_BYTES of input. Length is counted in
    UTF-8 bytes, not characters: 40 accented letters are 80 bytes.
    """

    MAX_PASSWORD_BYTES = 72

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds
        # Computed once so the first unknown-email login is not measurably
        # slower than later ones.
        self._dummy_hash = self.hash("devconnect_timing_dummy")

    @classmethod
    def accepts(cls, plain: str) -> bool:
        """True if plain is short enough for bcrypt."""
        return len(plain.encode("utf-8")) <= cls.MAX_PASSWORD_BYTES

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the plaintext password.

        Raises ValueError if plain is longer than MAX_PASSWORD_BYTES; the
        registration flow rejects such passwords before they get here.
        """
        if not self.accepts(plain):
            raise ValueError(f"Password exceeds {self.MAX_PASSWORD_BYTES} bytes.")
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches hashed, False on mismatch.

        A password too long to have been hashed cannot match; it returns
        False after the same amount of bcrypt work. Raises ValueError if
        hashed is not a bcrypt hash.
        """
        candidate = plain.encode("utf-8")
        fits = len(candidate) <= self.MAX_PASSWORD_BYTES
        try:
            matched = bcrypt.checkpw(candidate[: self.MAX_PASSWORD_BYTES], hashed.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            raise ValueError("Malformed password hash.") from exc
        return fits and matched

    def dummy_verify(self, plain: str) -> None:
        """Spend one verification's worth of work against the dummy hash."""
        self.verify(plain, self._dummy_hash)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenService:
    """Issue and verify signed, time-bounded bearer tokens.

    Args:
        secret_key:     Process-wide signing secret. Never logged.
        expire_seconds: Token lifetime in seconds.
        clock:          Returns the current Unix time; time.time by default.
    """

    def __init__(
        self,
        secret_key: str,
        expire_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds
        self._clock = clock

    def issue(self, user_id: EntityId) -> str:
        """Encode a signed JWT for user_id, expiring expire_seconds from now."""
        now = int(self._clock())
        payload = {
            "user": {"id": to_db(user_id)},
            "iat": now,
            "exp": now + self.expire_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> EntityId | None:
        """Verify a JWT and return the user id it names, or None on any failure.

        Returning None (rather than raising) keeps the gate simple: every
        invalid token is the same "unauthenticated" outcome.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError:
            return None

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or exp <= self._clock():
            return None
        user = payload.get("user")
        if not isinstance(user, dict):
            return None
        try:
            return parse_id(user.get("id"))
        except MalformedIdentifier:
            return None
