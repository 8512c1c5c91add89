"""
social/models.py -- Domain dataclasses for profiles and posts.

These are pure data containers with zero logic. Ownership checks and list
edits live in social/profiles.py and social/posts.py; persistence lives in
social/store.py.

Profiles and posts are documents: their lists (experience, education,
skills, likes, comments) are stored inline with the parent and written back
whole by SocialStore.save_profile() / save_post().
"""

from dataclasses import dataclass, field
from typing import Optional

from core.ids import EntityId


@dataclass
class SocialLinks:
    youtube: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    linkedin: Optional[str] = None
    instagram: Optional[str] = None


@dataclass
class Experience:
    """One job on a profile. from_date/to_date are ISO 8601 dates as given."""

    id: EntityId
    title: str
    company: str
    from_date: str
    location: Optional[str] = None
    to_date: Optional[str] = None
    current: bool = False
    description: Optional[str] = None


@dataclass
class Education:
    id: EntityId
    school: str
    degree: str
    fieldofstudy: str
    from_date: str
    to_date: Optional[str] = None
    current: bool = False
    description: Optional[str] = None


@dataclass
class Profile:
    """A user's public profile. At most one per user (UNIQUE on user_id).

    experience and education are kept most-recent-first: new entries are
    prepended.

    id is None before the record is written to the database.
    """

    user_id: EntityId
    status: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    githubusername: Optional[str] = None
    skills: list[str] = field(default_factory=list)
    social: SocialLinks = field(default_factory=SocialLinks)
    experience: list[Experience] = field(default_factory=list)
    education: list[Education] = field(default_factory=list)
    id: Optional[EntityId] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class Like:
    user_id: EntityId


@dataclass
class Comment:
    """A comment on a post. Only its author (user_id) may delete it."""

    id: EntityId
    user_id: EntityId
    text: str
    name: str = ""
    avatar: str = ""
    created_at: str = ""


@dataclass
class Post:
    """A feed post.

    name/avatar are a snapshot of the author taken at creation; later account
    changes do not rewrite them. likes is most-recent-first and holds each
    user at most once; comments are oldest-first (appended).

    id is None before the record is written to the database.
    """

    user_id: EntityId
    text: str
    name: str = ""
    avatar: str = ""
    likes: list[Like] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    id: Optional[EntityId] = None
    created_at: str = ""  # ISO 8601, set by store on insert
