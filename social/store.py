"""
social/store.py -- SQLAlchemy-backed persistence for profiles and posts.

Uses SQLAlchemy Core (not ORM) so the dataclasses in social/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. SocialStore is the repository; the
_row_to_* functions and _*_to_json helpers are the mappers.

Documents: the list-valued parts of a profile or post (skills, social links,
experience, education, likes, comments) are stored as JSON text inline with
the parent row. save_profile() and save_post() write the whole document back.

Concurrency: there is no optimistic concurrency control. Two requests that
both read a post, edit its likes or comments, and save it back can lose one
of the edits; last write wins.

Security: all queries use bound parameters. No f-strings in SQL.
"""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, MetaData, String, Table, Text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from core.db import make_engine
from core.ids import EntityId, new_id, parse_id, to_db
from social.models import Comment, Education, Experience, Like, Post, Profile, SocialLinks

logger = logging.getLogger("devconnect.social")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_profiles = Table(
    "profiles",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("user_id", String(32), nullable=False, unique=True),
    Column("status", String(255)),
    Column("company", String(255)),
    Column("website", String(255)),
    Column("location", String(255)),
    Column("bio", Text),
    Column("githubusername", String(255)),
    Column("skills", Text),  # JSON array
    Column("social", Text),  # JSON object
    Column("experience", Text),  # JSON array, most recent first
    Column("education", Text),  # JSON array, most recent first
    Column("created_at", String(32), nullable=False),
)

_posts = Table(
    "posts",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("user_id", String(32), nullable=False, index=True),
    Column("text", Text, nullable=False),
    Column("name", String(255)),
    Column("avatar", Text),
    Column("likes", Text),  # JSON array of user id hex, most recent first
    Column("comments", Text),  # JSON array of comment objects, oldest first
    Column("created_at", String(32), nullable=False, index=True),
)

_PROFILE_FIELDS = ("status", "company", "website", "location", "bio", "githubusername")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SocialStore:
    """Repository for Profile and Post documents.

    Usage:
        store = SocialStore("sqlite:///devconnect.db")
        profile = store.upsert_profile(uid, lambda p: replace(p, status="Developer", skills=["python"]))
        post_id = store.create_post(Post(user_id=uid, text="hello"))
        post = store.get_post(post_id)
        post.likes.insert(0, Like(user_id=other))
        store.save_post(post)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_profile_by_user(self, user_id: EntityId) -> Optional[Profile]:
        with self.engine.connect() as conn:
            row = conn.execute(_profiles.select().where(_profiles.c.user_id == to_db(user_id))).fetchone()
        return _row_to_profile(row) if row is not None else None

    def list_profiles(self) -> list[Profile]:
        """Return every profile, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_profiles.select().order_by(_profiles.c.created_at)).fetchall()
        return [_row_to_profile(r) for r in rows]

    def upsert_profile(self, user_id: EntityId, apply: Callable[[Profile], Profile]) -> Profile:
        """Find-or-create the one profile for user_id, run apply on it, and return the stored copy.

        apply receives the stored profile, or a blank Profile when the user
        has none yet. A concurrent insert for the same user hits the UNIQUE
        constraint; apply is then re-run on the row the other request wrote,
        so its fields are merged into rather than overwritten.
        """
        existing = self.get_profile_by_user(user_id)
        if existing is None:
            try:
                self._insert_profile(apply(Profile(user_id=user_id)))
                logger.info("Created profile for %s", user_id)
                return self.get_profile_by_user(user_id)
            except IntegrityError:
                logger.info("Profile for %s created concurrently; merging into it", user_id)
                existing = self.get_profile_by_user(user_id)
        self.save_profile(apply(existing))
        return self.get_profile_by_user(user_id)

    def _insert_profile(self, profile: Profile) -> None:
        with self.engine.connect() as conn:
            conn.execute(
                _profiles.insert().values(
                    id=to_db(profile.id or new_id()),
                    user_id=to_db(profile.user_id),
                    created_at=_now_iso(),
                    **_profile_columns(profile),
                )
            )
            conn.commit()

    def save_profile(self, profile: Profile) -> bool:
        """Write back the whole profile document. Returns False if it no longer exists."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _profiles.update().where(_profiles.c.id == to_db(profile.id)).values(**_profile_columns(profile))
            )
            conn.commit()
        return result.rowcount > 0

    def delete_profile(self, user_id: EntityId) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_profiles.delete().where(_profiles.c.user_id == to_db(user_id)))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def create_post(self, post: Post) -> EntityId:
        post_id = post.id or new_id()
        with self.engine.connect() as conn:
            conn.execute(
                _posts.insert().values(
                    id=to_db(post_id),
                    user_id=to_db(post.user_id),
                    created_at=_now_iso(),
                    **_post_columns(post),
                )
            )
            conn.commit()
        return post_id

    def get_post(self, post_id: EntityId) -> Optional[Post]:
        with self.engine.connect() as conn:
            row = conn.execute(_posts.select().where(_posts.c.id == to_db(post_id))).fetchone()
        return _row_to_post(row) if row is not None else None

    def list_posts(self) -> list[Post]:
        """Return every post, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_posts.select().order_by(_posts.c.created_at.desc())).fetchall()
        return [_row_to_post(r) for r in rows]

    def save_post(self, post: Post) -> bool:
        """Write back the whole post document (text, likes, comments)."""
        with self.engine.connect() as conn:
            result = conn.execute(_posts.update().where(_posts.c.id == to_db(post.id)).values(**_post_columns(post)))
            conn.commit()
        return result.rowcount > 0

    def delete_post(self, post_id: EntityId) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_posts.delete().where(_posts.c.id == to_db(post_id)))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Mappers
# ---------------------------------------------------------------------------


def _profile_columns(profile: Profile) -> dict:
    columns = {name: getattr(profile, name) for name in _PROFILE_FIELDS}
    columns["skills"] = json.dumps(profile.skills)
    columns["social"] = json.dumps(
        {k: v for k, v in vars(profile.social).items() if v is not None},
    )
    columns["experience"] = json.dumps([_entry_to_json(e) for e in profile.experience])
    columns["education"] = json.dumps([_entry_to_json(e) for e in profile.education])
    return columns


def _entry_to_json(entry) -> dict:
    data = dict(vars(entry))
    data["id"] = to_db(entry.id)
    return data


def _post_columns(post: Post) -> dict:
    return {
        "text": post.text,
        "name": post.name,
        "avatar": post.avatar,
        "likes": json.dumps([to_db(like.user_id) for like in post.likes]),
        "comments": json.dumps(
            [
                {
                    "id": to_db(c.id),
                    "user_id": to_db(c.user_id),
                    "text": c.text,
                    "name": c.name,
                    "avatar": c.avatar,
                    "created_at": c.created_at,
                }
                for c in post.comments
            ]
        ),
    }


def _load_list(raw: Optional[str]) -> list:
    return json.loads(raw) if raw else []


def _row_to_profile(row) -> Profile:
    social = json.loads(row.social) if row.social else {}
    experience = []
    for item in _load_list(row.experience):
        item["id"] = parse_id(item["id"])
        experience.append(Experience(**item))
    education = []
    for item in _load_list(row.education):
        item["id"] = parse_id(item["id"])
        education.append(Education(**item))
    return Profile(
        id=parse_id(row.id),
        user_id=parse_id(row.user_id),
        status=row.status,
        company=row.company,
        website=row.website,
        location=row.location,
        bio=row.bio,
        githubusername=row.githubusername,
        skills=_load_list(row.skills),
        social=SocialLinks(**social),
        experience=experience,
        education=education,
        created_at=row.created_at,
    )


def _row_to_post(row) -> Post:
    comments = [
        Comment(
            id=parse_id(c["id"]),
            user_id=parse_id(c["user_id"]),
            text=c["text"],
            name=c.get("name", ""),
            avatar=c.get("avatar", ""),
            created_at=c.get("created_at", ""),
        )
        for c in _load_list(row.comments)
    ]
    return Post(
        id=parse_id(row.id),
        user_id=parse_id(row.user_id),
        text=row.text,
        name=row.name or "",
        avatar=row.avatar or "",
        likes=[Like(user_id=parse_id(u)) for u in _load_list(row.likes)],
        comments=comments,
        created_at=row.created_at,
    )
