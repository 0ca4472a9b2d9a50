"""
Credential verifiers.

A verifier is any callable taking (user, password) and returning True when
the credentials are valid. Coroutine functions are accepted as well.
"""

import hmac
from typing import Awaitable, Callable, Mapping, Union

from passlib.hash import bcrypt


Verifier = Callable[[str, str], Union[bool, Awaitable[bool]]]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash."""
    return bcrypt.verify(password, password_hash)


def simple_verifier(users: Mapping[str, str]) -> Callable[[str, str], bool]:
    """
    Verifier over an in-memory username -> password map.

    Passwords are compared in constant time. Unknown users still pay for one
    comparison so response time does not reveal which usernames exist.

    Example:
        verifier = simple_verifier({"user": "qwerty", "admin": "asdfgh"})
    """
    table = {user: password.encode("utf-8") for user, password in users.items()}

    def verify(user: str, password: str) -> bool:
        given = password.encode("utf-8")
        expected = table.get(user)
        if expected is None:
            hmac.compare_digest(given, given)
            return False
        return hmac.compare_digest(given, expected)

    return verify


def hashed_verifier(users: Mapping[str, str]) -> Callable[[str, str], bool]:
    """
    Verifier over a username -> bcrypt hash map.

    Hashes can be generated with scripts/hash_password.py. Blocking; the
    auth handler runs it in a worker thread.
    """
    table = dict(users)
    # Unknown users are checked against this so bcrypt cost is always paid
    dummy_hash = hash_password("attar-unknown-user")

    def verify(user: str, password: str) -> bool:
        password_hash = table.get(user)
        if password_hash is None:
            verify_password(password, dummy_hash)
            return False
        return verify_password(password, password_hash)

    return verify
