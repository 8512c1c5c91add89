"""
auth/accounts.py -- Registration and login flows.

Both flows validate their input first and report every failing field at
once (core.errors.ValidationError). Persistence goes through UserStore,
hashing through PasswordHasher, token issue through TokenService -- all
passed in by the caller, never looked up globally.

Security:
  Login failures are deliberately indistinguishable. An unknown email and a
  wrong password raise the same InvalidCredentials with the same message,
  and an unknown email still runs one bcrypt verification (against the
  hasher's dummy hash) so response time does not leak whether the email is
  registered.
  A password longer than bcrypt accepts is just another wrong password.

Layer rule: no imports from api/ or social/.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from auth.avatar import gravatar_url
from auth.models import User
from auth.store import UserStore
from auth.tokens import PasswordHasher, TokenService
from core.errors import Conflict, InvalidCredentials, Violations

logger = logging.getLogger("devconnect.auth")

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_EMAIL_RE = re.compile(EMAIL_PATTERN)

MIN_PASSWORD_LENGTH = 6


@dataclass
class Registration:
    token: str
    user: User


def _valid_email(email: str | None) -> bool:
    return bool(email) and _EMAIL_RE.match(email) is not None


def register(
    store: UserStore,
    hasher: PasswordHasher,
    tokens: TokenService,
    name: str | None,
    email: str | None,
    password: str | None,
) -> Registration:
    """Create an account and return a token for it.

    Not idempotent: a second call with the same email raises Conflict.
    """
    v = Violations()
    v.require(name, "name", "Name is required!")
    v.check(_valid_email(email), "email", "Please include a valid email!")
    v.check(
        password is not None and len(password) >= MIN_PASSWORD_LENGTH,
        "password",
        f"Password need to be at least {MIN_PASSWORD_LENGTH} characters!",
    )
    v.check(
        password is None or hasher.accepts(password),
        "password",
        f"Password must be at most {hasher.MAX_PASSWORD_BYTES} bytes!",
    )
    v.raise_if_any()

    if store.get_by_email(email) is not None:
        raise Conflict("User already exists!")

    user = User(
        name=name.strip(),
        email=email,
        avatar=gravatar_url(email),
        password_hash=hasher.hash(password),
    )
    try:
        user_id = store.create_user(user)
    except IntegrityError as exc:
        # A concurrent registration won the race past the existence check.
        raise Conflict("User already exists!") from exc

    created = store.get_by_id(user_id)
    logger.info("Registered user %s", user_id)
    return Registration(token=tokens.issue(user_id), user=created)


def authenticate_user(store: UserStore, hasher: PasswordHasher, email: str, password: str) -> User | None:
    """Return the User whose credentials match, or None.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against the dummy hash (same cost)
    - Wrong password: bcrypt runs against the real hash (same cost)
    """
    user = store.get_by_email(email)
    if user is None:
        hasher.dummy_verify(password)
        return None
    if not hasher.verify(password, user.password_hash):
        return None
    return user


def login(
    store: UserStore,
    hasher: PasswordHasher,
    tokens: TokenService,
    email: str | None,
    password: str | None,
) -> str:
    """Check credentials and return a freshly issued token."""
    v = Violations()
    v.check(_valid_email(email), "email", "Please include a valid email!")
    v.check(bool(password), "password", "Password is required!")
    v.raise_if_any()

    user = authenticate_user(store, hasher, email, password)
    if user is None:
        logger.warning("Failed login attempt")
        raise InvalidCredentials()

    logger.info("Login: %s", user.id)
    return tokens.issue(user.id)
