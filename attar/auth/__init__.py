"""
Authentication module.
"""

from attar.auth.handler import AuthHandler
from attar.auth.verifiers import (
    Verifier,
    hash_password,
    hashed_verifier,
    simple_verifier,
    verify_password,
)

__all__ = [
    "AuthHandler",
    "Verifier",
    "hash_password",
    "hashed_verifier",
    "simple_verifier",
    "verify_password",
]
