"""
Session cookie codec and store.
"""

from attar.session.codec import CookieCodec, DEFAULT_MAX_AGE, MAX_COOKIE_LENGTH
from attar.session.store import CookieStore, Session

__all__ = [
    "CookieCodec",
    "CookieStore",
    "Session",
    "DEFAULT_MAX_AGE",
    "MAX_COOKIE_LENGTH",
]
