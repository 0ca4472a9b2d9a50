"""
Authenticated, encrypted cookie codec.

Encoding pipeline:
    values -> JSON -> AES-CTR (random IV) -> URL-safe base64
           -> timestamp + HMAC-SHA256 signature (salted with the cookie name)

Decoding verifies the signature in constant time before anything is
decrypted, so tampered cookies, cookies signed under another auth key and
cookies minted for another cookie name never reach the cipher.
"""

import hashlib
import json
import logging
import os
from typing import Dict, Mapping, Optional, Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from itsdangerous import BadData, BadPayload, SignatureExpired, URLSafeTimedSerializer
from itsdangerous.encoding import base64_decode, base64_encode

from ..errors import DecodeError, EncodeError

logger = logging.getLogger(__name__)


# Browsers refuse cookies larger than this
MAX_COOKIE_LENGTH = 4096
# Signed timestamps older than this are rejected: 30 days
DEFAULT_MAX_AGE = 86400 * 30
IV_SIZE = 16

Key = Union[bytes, str]


def _to_bytes(key: Key) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    return bytes(key)


def _is_canonical(value: str) -> bool:
    """
    True when every dot-separated segment re-encodes to itself.

    base64 decoding ignores padding bits in the last character of a
    segment, so flipping one of those would otherwise still verify.
    """
    # A leading dot marks a compressed payload
    for segment in value.lstrip(".").split("."):
        try:
            if base64_encode(base64_decode(segment)).decode("ascii") != segment:
                return False
        except BadData:
            return False
    return True


class _PayloadCipher:
    """
    AES-CTR payload cipher.

    Plugged into itsdangerous as its "serializer": dumps() yields the
    ciphertext that gets signed, loads() is only called on payloads whose
    signature already verified.
    """

    def __init__(self, key: bytes):
        if len(key) not in (16, 24, 32):
            raise ValueError(
                "encryption key must be 16, 24 or 32 bytes "
                f"(AES-128/192/256), got {len(key)}"
            )
        self._algorithm = algorithms.AES(key)

    def dumps(self, values: Mapping[str, str]) -> bytes:
        plaintext = json.dumps(
            dict(values), separators=(",", ":"), sort_keys=True
        ).encode("utf-8")
        iv = os.urandom(IV_SIZE)
        encryptor = Cipher(self._algorithm, modes.CTR(iv)).encryptor()
        return iv + encryptor.update(plaintext) + encryptor.finalize()

    def loads(self, blob: bytes) -> Dict[str, str]:
        if len(blob) < IV_SIZE:
            raise ValueError("ciphertext is too short")
        iv, ciphertext = blob[:IV_SIZE], blob[IV_SIZE:]
        decryptor = Cipher(self._algorithm, modes.CTR(iv)).decryptor()
        plaintext = decryptor.update(ciphertext) + decryptor.finalize()

        values = json.loads(plaintext.decode("utf-8"))
        if not isinstance(values, dict):
            raise ValueError("session payload is not a mapping")
        for key, value in values.items():
            if not isinstance(value, str):
                raise ValueError(f"session value for {key!r} is not a string")
        return values


class CookieCodec:
    """
    Turns a str -> str mapping into a cookie value and back.

    Stateless apart from the keys; safe to share between concurrent requests.
    """

    def __init__(
        self,
        auth_key: Key,
        encryption_key: Key,
        max_age: int = DEFAULT_MAX_AGE,
    ):
        """
        Initialize codec.

        Args:
            auth_key: HMAC key used to sign cookies
            encryption_key: AES key (16, 24 or 32 bytes)
            max_age: Reject cookies signed more than this many seconds ago
                (0 disables the check)
        """
        auth_key = _to_bytes(auth_key)
        if not auth_key:
            raise ValueError("auth key must not be empty")
        if max_age < 0:
            raise ValueError("max_age must not be negative")

        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(
            auth_key,
            serializer=_PayloadCipher(_to_bytes(encryption_key)),
            signer_kwargs={"digest_method": hashlib.sha256},
        )

    def encode(self, name: str, values: Mapping[str, str]) -> str:
        """
        Encode session values for the cookie called ``name``.

        Raises:
            EncodeError: values are not strings or the result is too long
        """
        for key, value in values.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise EncodeError(f"{name}: session keys and values must be strings")

        # Binary payload serializer, so itsdangerous hands back bytes
        encoded = self._serializer.dumps(dict(values), salt=name).decode("ascii")
        if len(encoded) > MAX_COOKIE_LENGTH:
            raise EncodeError(f"{name}: the value is too long ({len(encoded)} bytes)")
        return encoded

    def decode(self, name: str, value: Optional[str]) -> Dict[str, str]:
        """
        Decode the cookie called ``name``.

        Raises:
            DecodeError: cookie missing, forged, expired or corrupted
        """
        if not value:
            raise DecodeError("the cookie is missing", name)
        if not _is_canonical(value):
            raise DecodeError("the value is not valid", name)

        try:
            return self._serializer.loads(
                value, max_age=self.max_age or None, salt=name
            )
        except SignatureExpired as exc:
            raise DecodeError("expired timestamp", name) from exc
        except BadPayload as exc:
            raise DecodeError("the value could not be decrypted", name) from exc
        except BadData as exc:
            raise DecodeError("the value is not valid", name) from exc
