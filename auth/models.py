"""
auth/models.py -- Domain dataclass for the account entity.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in social/models.py -- dataclasses own domain shape; stores and flow
functions do the work.

Layer rule: no imports from api/ or social/.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.ids import EntityId


@dataclass
class User:
    """A registered account.

    password_hash is the bcrypt hash; it never leaves the auth layer (the
    API's UserResponse has no field for it). avatar is the gravatar URL
    derived from the email at registration.

    id is None before the record is written to the database.
    """

    name: str
    email: str
    password_hash: str
    avatar: str = ""
    id: EntityId | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
