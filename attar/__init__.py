"""
Attar - cookie session authentication middleware for ASGI applications.

Requests without a valid session are redirected to the login route; the
session lives entirely in a signed, encrypted, time-bounded cookie.
"""

from attar.auth import AuthHandler, hash_password, hashed_verifier, simple_verifier
from attar.config import AttarOptions
from attar.core import Attar, AttarBuilder, KeyPair
from attar.errors import (
    AdmissionDenied,
    AttarError,
    AuthRejected,
    ConfigError,
    DecodeError,
    EncodeError,
    TimeParseError,
)
from attar.proxy import AdmissionMiddleware, check_session, current_user
from attar.session import CookieCodec, CookieStore, Session

__all__ = [
    "Attar",
    "AttarBuilder",
    "AttarOptions",
    "KeyPair",
    "AuthHandler",
    "AdmissionMiddleware",
    "check_session",
    "current_user",
    "CookieCodec",
    "CookieStore",
    "Session",
    "hash_password",
    "hashed_verifier",
    "simple_verifier",
    "AttarError",
    "AdmissionDenied",
    "AuthRejected",
    "ConfigError",
    "DecodeError",
    "EncodeError",
    "TimeParseError",
]
