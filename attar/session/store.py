"""
Cookie-based session store.
"""

import logging
from typing import Dict, Optional

from starlette.requests import HTTPConnection
from starlette.responses import Response

from ..config import AttarOptions
from .codec import CookieCodec

logger = logging.getLogger(__name__)


class Session(dict):
    """Session values read from (or destined for) one named cookie."""

    def __init__(
        self,
        store: "CookieStore",
        name: str,
        values: Optional[Dict[str, str]] = None,
        is_new: bool = True,
    ):
        super().__init__(values or {})
        self.store = store
        self.name = name
        self.is_new = is_new

    def save(self, response: Response) -> None:
        """Write the session to ``response`` as a Set-Cookie header."""
        self.store.save(response, self)


class CookieStore:
    """Binds a named cookie to a request/response pair."""

    def __init__(self, codec: CookieCodec, options: AttarOptions):
        """
        Initialize session store.

        Args:
            codec: Codec used to sign, encrypt and decode cookie values
            options: Cookie attributes (path, domain, max-age, flags)
        """
        self.codec = codec
        self.options = options

    def get(self, request: HTTPConnection, name: str) -> Session:
        """
        Get the session stored in the request cookie ``name``.

        Returns a fresh empty session when the cookie is absent.

        Raises:
            DecodeError: cookie present but invalid
        """
        value = request.cookies.get(name)
        if not value:
            return Session(self, name)

        values = self.codec.decode(name, value)
        return Session(self, name, values, is_new=False)

    def save(self, response: Response, session: Session) -> None:
        """Encode ``session`` and set it as a cookie on ``response``."""
        value = self.codec.encode(session.name, session)
        self._set_cookie(response, session.name, value, self.options.cookie_max_age)
        session.is_new = False

    def clear(self, response: Response, name: str) -> None:
        """Overwrite the cookie ``name`` with an expired, empty one."""
        self._set_cookie(response, name, "", -1)

    def _set_cookie(
        self, response: Response, name: str, value: str, max_age: int
    ) -> None:
        options = self.options

        # 0 = no Max-Age (browser session cookie), negative = delete now
        expires = None
        if max_age == 0:
            max_age = None
        elif max_age < 0:
            max_age = 0
            expires = 0

        response.set_cookie(
            key=name,
            value=value,
            max_age=max_age,
            expires=expires,
            path=options.cookie_path or None,
            domain=options.cookie_domain or None,
            secure=options.cookie_secure,
            httponly=options.cookie_http_only,
            samesite=options.cookie_same_site,
        )
