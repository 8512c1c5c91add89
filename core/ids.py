"""
core/ids.py -- Entity identifiers.

Every user, profile, post, comment and profile entry is identified by a
uuid.UUID. Ownership checks compare UUIDs directly, never their string forms.
Stores persist the 32-char hex form.

parse_id() is the only place raw text (path params, token claims) becomes an
id. Text that cannot be an id raises MalformedIdentifier, which callers can
tell apart from a store lookup returning None for an unknown id.
"""

from __future__ import annotations

import uuid

from core.errors import MalformedIdentifier

EntityId = uuid.UUID


def new_id() -> EntityId:
    return uuid.uuid4()


def parse_id(raw: object) -> EntityId:
    """Return the EntityId for raw, or raise MalformedIdentifier."""
    if isinstance(raw, uuid.UUID):
        return raw
    if not isinstance(raw, str):
        raise MalformedIdentifier()
    try:
        return uuid.UUID(raw)
    except ValueError as exc:
        raise MalformedIdentifier() from exc


def to_db(entity_id: EntityId) -> str:
    return entity_id.hex
