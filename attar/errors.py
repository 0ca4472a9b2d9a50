"""
Error types raised by the authentication middleware.
"""

from typing import Optional


class AttarError(Exception):
    """Base exception for all attar errors."""
    pass


class ConfigError(AttarError):
    """Middleware is missing required configuration (fatal at startup)."""
    pass


class DecodeError(AttarError):
    """Session cookie is present but cannot be verified, decrypted or parsed."""

    def __init__(self, message: str, name: Optional[str] = None):
        if name:
            message = f"{name}: {message}"
        super().__init__(message)
        self.name = name


class EncodeError(AttarError):
    """Session values cannot be turned into a cookie."""
    pass


class TimeParseError(AttarError):
    """Session login time is present but is not an RFC 3339 timestamp."""
    pass


class AdmissionDenied(AttarError):
    """Request carries no usable session (absent, expired or mismatched)."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AuthRejected(AttarError):
    """Credential verifier refused a login attempt."""

    def __init__(self, user: str):
        super().__init__(f"authentication rejected for user {user!r}")
        self.user = user
