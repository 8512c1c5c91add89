"""
auth/avatar.py -- Gravatar URL for an email address.

Pure function of the email: no network call, no side effect beyond building
the URL. Gravatar keys images by the MD5 of the trimmed, lower-cased address.
"""

from __future__ import annotations

import hashlib
from urllib.parse import urlencode

_GRAVATAR_BASE = "https://www.gravatar.com/avatar/"


def gravatar_url(email: str, size: int = 200, rating: str = "pg", default: str = "mm") -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8"), usedforsecurity=False).hexdigest()
    query = urlencode({"s": str(size), "r": rating, "d": default})
    return f"{_GRAVATAR_BASE}{digest}?{query}"
