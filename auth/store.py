"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as social/store.py).
UserStore is the repository; _row_to_user is the mapper.
Flow and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Email uniqueness is enforced by a UNIQUE constraint; create_user() lets
  IntegrityError propagate so the registration flow can report a conflict
  when two requests race past the existence check.

Layer rule: no imports from api/ or social/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from auth.models import User
from core.db import make_engine
from core.ids import EntityId, new_id, parse_id, to_db

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),  # uuid hex
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("avatar", Text, nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///devconnect.db")
        user_id = store.create_user(User(name="Ada", email="ada@example.com", password_hash=h))
        user = store.get_by_email("ada@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def create_user(self, user: User) -> EntityId:
        """Insert a new user and return its assigned id.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        user_id = user.id or new_id()
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=to_db(user_id),
                    name=user.name,
                    email=user.email,
                    password_hash=user.password_hash,
                    avatar=user.avatar,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        return user_id

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: EntityId) -> User | None:
        """Look up a user by id. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == to_db(user_id))).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_many(self, user_ids: list[EntityId]) -> dict[EntityId, User]:
        """Batch lookup used to attach owner name/avatar to profile listings."""
        if not user_ids:
            return {}
        keys = [to_db(u) for u in user_ids]
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().where(_users.c.id.in_(keys))).fetchall()
        users = [_row_to_user(r) for r in rows]
        return {u.id: u for u in users}

    def delete_user(self, user_id: EntityId) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Deleting the user's profile is the caller's job (see
        social.profiles.delete_account); this store knows nothing about profiles.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == to_db(user_id)))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=parse_id(row.id),
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        avatar=row.avatar or "",
        created_at=row.created_at,
    )
