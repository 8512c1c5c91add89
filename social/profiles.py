"""
social/profiles.py -- Profile upsert, experience/education edits, account deletion.

Every flow here acts on the acting user's own profile, looked up by the user
id the auth gate resolved. There is no way to name somebody else's profile
in a mutation, which is how profile ownership is enforced.

Sparse update: ProfileUpdate holds only the fields the caller supplied
(empty strings count as not supplied). On update, merge_into() writes those
fields and leaves every other stored field untouched; on first create the
unsupplied fields are simply absent.

Skills arrive as one string and are split strictly on ", " (comma + space).
"python,go" is one skill, not two.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from auth.store import UserStore
from core.errors import MalformedIdentifier, NotFound, Violations
from core.ids import EntityId, new_id, parse_id
from social.models import Education, Experience, Profile
from social.store import SocialStore

logger = logging.getLogger("devconnect.social")

SKILLS_SEPARATOR = ", "

_SCALAR_FIELDS = ("status", "company", "website", "location", "bio", "githubusername")
SOCIAL_LINKS = ("youtube", "twitter", "facebook", "linkedin", "instagram")


def split_skills(raw: str) -> list[str]:
    return [skill.strip() for skill in raw.split(SKILLS_SEPARATOR)]


def _present(value: str | None) -> str | None:
    return value if value else None


@dataclass
class ProfileUpdate:
    """The fields supplied in one upsert request. None means "not supplied"."""

    status: str | None = None
    company: str | None = None
    website: str | None = None
    location: str | None = None
    bio: str | None = None
    githubusername: str | None = None
    skills: list[str] | None = None
    social: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_input(cls, skills: str | None = None, **fields: str | None) -> "ProfileUpdate":
        """Build an update from raw request values.

        Accepts the scalar profile fields and the social link names as
        keyword arguments; falsy values are dropped.
        """
        update = cls(skills=split_skills(skills) if skills else None)
        for name in _SCALAR_FIELDS:
            setattr(update, name, _present(fields.get(name)))
        update.social = {name: fields[name] for name in SOCIAL_LINKS if fields.get(name)}
        return update

    def merge_into(self, profile: Profile) -> Profile:
        for name in _SCALAR_FIELDS:
            value = getattr(self, name)
            if value is not None:
                setattr(profile, name, value)
        if self.skills is not None:
            profile.skills = list(self.skills)
        for name, url in self.social.items():
            setattr(profile.social, name, url)
        return profile


@dataclass
class EntryRemoval:
    """Outcome of removing an experience/education entry.

    An unknown entry id is a soft outcome (removed=False with a message),
    not an error: the request still succeeds.
    """

    removed: bool
    message: str
    profile: Profile


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_own_profile(store: SocialStore, user_id: EntityId) -> Profile:
    profile = store.get_profile_by_user(user_id)
    if profile is None:
        raise NotFound("There is no profile for this user!")
    return profile


def get_profile_for_user(store: SocialStore, raw_user_id: str) -> Profile:
    """Public lookup by user id text. Raises MalformedIdentifier or NotFound."""
    profile = store.get_profile_by_user(parse_id(raw_user_id))
    if profile is None:
        raise NotFound("Profile not found!")
    return profile


# ---------------------------------------------------------------------------
# Upsert
# ---------------------------------------------------------------------------


def upsert_profile(
    store: SocialStore,
    user_id: EntityId,
    status: str | None = None,
    skills: str | None = None,
    **fields: str | None,
) -> Profile:
    """Create the user's profile or apply a sparse update to it."""
    v = Violations()
    v.require(status, "status", "Status is required!")
    v.require(skills, "skills", "Skills is required!")
    v.raise_if_any()

    update = ProfileUpdate.from_input(status=status, skills=skills, **fields)
    return store.upsert_profile(user_id, update.merge_into)


# ---------------------------------------------------------------------------
# Experience / education
# ---------------------------------------------------------------------------


def add_experience(
    store: SocialStore,
    user_id: EntityId,
    title: str | None,
    company: str | None,
    from_date: str | None,
    location: str | None = None,
    to_date: str | None = None,
    current: bool = False,
    description: str | None = None,
) -> Profile:
    """Prepend an experience entry (most recent first)."""
    v = Violations()
    v.require(title, "title", "Title is required!")
    v.require(company, "company", "Company is required!")
    v.require(from_date, "from", "From date is required!")
    v.raise_if_any()

    profile = get_own_profile(store, user_id)
    profile.experience.insert(
        0,
        Experience(
            id=new_id(),
            title=title,
            company=company,
            from_date=from_date,
            location=location,
            to_date=to_date,
            current=current,
            description=description,
        ),
    )
    store.save_profile(profile)
    return profile


def add_education(
    store: SocialStore,
    user_id: EntityId,
    school: str | None,
    degree: str | None,
    fieldofstudy: str | None,
    from_date: str | None,
    to_date: str | None = None,
    current: bool = False,
    description: str | None = None,
) -> Profile:
    """Prepend an education entry (most recent first)."""
    v = Violations()
    v.require(school, "school", "School is required!")
    v.require(degree, "degree", "Degree is required!")
    v.require(fieldofstudy, "fieldofstudy", "Field of study is required!")
    v.require(from_date, "from", "From date is required!")
    v.raise_if_any()

    profile = get_own_profile(store, user_id)
    profile.education.insert(
        0,
        Education(
            id=new_id(),
            school=school,
            degree=degree,
            fieldofstudy=fieldofstudy,
            from_date=from_date,
            to_date=to_date,
            current=current,
            description=description,
        ),
    )
    store.save_profile(profile)
    return profile


def _index_of(entries: list, raw_entry_id: str | EntityId) -> int:
    try:
        entry_id = parse_id(raw_entry_id)
    except MalformedIdentifier:
        return -1
    for index, entry in enumerate(entries):
        if entry.id == entry_id:
            return index
    return -1


def _remove_entry(store: SocialStore, user_id: EntityId, raw_entry_id, list_name: str, label: str) -> EntryRemoval:
    profile = get_own_profile(store, user_id)
    entries = getattr(profile, list_name)
    index = _index_of(entries, raw_entry_id)
    if index == -1:
        return EntryRemoval(removed=False, message=f"This {label} not found!", profile=profile)
    del entries[index]
    store.save_profile(profile)
    return EntryRemoval(removed=True, message=f"{label.capitalize()} removed!", profile=profile)


def remove_experience(store: SocialStore, user_id: EntityId, raw_entry_id: str | EntityId) -> EntryRemoval:
    return _remove_entry(store, user_id, raw_entry_id, "experience", "experience")


def remove_education(store: SocialStore, user_id: EntityId, raw_entry_id: str | EntityId) -> EntryRemoval:
    return _remove_entry(store, user_id, raw_entry_id, "education", "education")


# ---------------------------------------------------------------------------
# Account deletion
# ---------------------------------------------------------------------------


def delete_account(users: UserStore, store: SocialStore, user_id: EntityId) -> None:
    """Delete the user's profile, then the user. Posts are left in place."""
    store.delete_profile(user_id)
    users.delete_user(user_id)
    logger.info("Deleted account %s", user_id)
