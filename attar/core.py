"""
Middleware assembly.

AttarBuilder collects configuration; build() validates it and returns a
frozen Attar that hands out the login router and the admission middleware.
"""

import logging
from typing import Mapping, NamedTuple, Optional, Union

from fastapi import APIRouter
from starlette.types import ASGIApp

from .auth import AuthHandler, Verifier, simple_verifier
from .config import AttarOptions
from .errors import ConfigError
from .proxy import AdmissionMiddleware
from .session import CookieCodec, CookieStore
from .session.codec import DEFAULT_MAX_AGE, Key
from .session.values import Clock, local_now

logger = logging.getLogger(__name__)


# Publicly known keys. Only usable through allow_default_keys().
DEFAULT_AUTH_KEY = b"261AD9502C583BD7D8AA03083598653B"
DEFAULT_ENCRYPTION_KEY = b"E9F6FDFAC2772D33FC5C7B3D6E4DDAFF"


class KeyPair(NamedTuple):
    """Raw keys for a CookieCodec."""
    auth_key: Key
    encryption_key: Key


CodecSource = Union[KeyPair, CookieCodec]


class Attar:
    """
    Configured authentication middleware.

    Instances are built by AttarBuilder and never change afterwards.
    """

    def __init__(
        self,
        options: AttarOptions,
        verifier: Verifier,
        codec: CookieCodec,
        clock: Clock = local_now,
    ):
        if not options.login_route:
            raise ConfigError("login route is not set")
        if verifier is None:
            raise ConfigError("verifier is not set")

        self.options = options
        self.verifier = verifier
        self.codec = codec
        self.clock = clock
        self.store = CookieStore(codec, options)
        self.auth_handler = AuthHandler(self.store, verifier, options, clock)
        self.login_handler = self.auth_handler.login
        self.logout_handler = self.auth_handler.logout

    @property
    def login_route(self) -> str:
        return self.options.login_route

    def router(self) -> APIRouter:
        """Router with POST login_route (and logout_route when configured)."""
        router = APIRouter()
        router.add_api_route(
            self.options.login_route,
            self.login_handler,
            methods=["POST"],
            include_in_schema=False,
        )
        if self.options.logout_route:
            router.add_api_route(
                self.options.logout_route,
                self.logout_handler,
                methods=["GET", "POST"],
                include_in_schema=False,
            )
        return router

    def middleware(self, app: ASGIApp) -> AdmissionMiddleware:
        """Wrap ``app`` in the admission middleware."""
        return AdmissionMiddleware(app, attar=self)

    @staticmethod
    def simple_verifier(users: Mapping[str, str]):
        """See attar.auth.simple_verifier."""
        return simple_verifier(users)

    @classmethod
    def from_settings(
        cls,
        verifier: Verifier,
        options: Optional[AttarOptions] = None,
    ) -> "Attar":
        """
        Build from ATTAR_* environment settings.

        Keys must be present as ATTAR_AUTH_KEY / ATTAR_ENCRYPTION_KEY.
        """
        return AttarBuilder(options or AttarOptions()).verifier(verifier).build()


class AttarBuilder:
    """
    Collects middleware configuration.

    Example:
        attar = (
            AttarBuilder(AttarOptions(session_name="test-session"))
            .login_route("/login")
            .verifier(check_auth)
            .keys(auth_key, encryption_key)
            .build()
        )
    """

    def __init__(self, options: Optional[AttarOptions] = None):
        self._options = options
        self._login_route: Optional[str] = None
        self._verifier: Optional[Verifier] = None
        self._codec_source: Optional[CodecSource] = None
        self._clock: Clock = local_now
        self._allow_default_keys = False

    def options(self, options: AttarOptions) -> "AttarBuilder":
        self._options = options
        return self

    def login_route(self, route: str) -> "AttarBuilder":
        """Override options.login_route."""
        self._login_route = route
        return self

    def verifier(self, verifier: Verifier) -> "AttarBuilder":
        self._verifier = verifier
        return self

    def keys(self, auth_key: Key, encryption_key: Key) -> "AttarBuilder":
        """Use raw keys. Replaces an earlier cookie_codec() call."""
        self._codec_source = KeyPair(auth_key, encryption_key)
        return self

    def cookie_codec(self, codec: CookieCodec) -> "AttarBuilder":
        """Use a pre-built codec. Replaces an earlier keys() call."""
        self._codec_source = codec
        return self

    def clock(self, clock: Clock) -> "AttarBuilder":
        """Time source returning aware datetimes."""
        self._clock = clock
        return self

    def allow_default_keys(self, allow: bool = True) -> "AttarBuilder":
        """Permit the built-in public keys when no keys are given. Never in production."""
        self._allow_default_keys = allow
        return self

    def build(self) -> Attar:
        """
        Validate configuration and build the middleware.

        Raises:
            ConfigError: login route, verifier or keys missing
        """
        options = self._options if self._options is not None else AttarOptions()

        if self._login_route is not None:
            route = self._login_route
            if not route.startswith("/"):
                raise ConfigError(f"login route {route!r} must start with '/'")
            options = options.model_copy(update={"login_route": route})

        if not options.login_route:
            raise ConfigError("login route is not set")
        if self._verifier is None:
            raise ConfigError("verifier is not set")

        return Attar(
            options=options,
            verifier=self._verifier,
            codec=self._resolve_codec(options),
            clock=self._clock,
        )

    def _resolve_codec(self, options: AttarOptions) -> CookieCodec:
        source = self._codec_source

        if source is None and options.auth_key and options.encryption_key:
            source = KeyPair(
                options.auth_key.get_secret_value(),
                options.encryption_key.get_secret_value(),
            )

        if source is None:
            if not self._allow_default_keys:
                raise ConfigError(
                    "session keys are not set; pass keys() or cookie_codec(), "
                    "or set ATTAR_AUTH_KEY and ATTAR_ENCRYPTION_KEY"
                )
            logger.warning(
                "USING DEFAULT SESSION KEYS. Anyone can forge session cookies; "
                "set real keys before going to production."
            )
            source = KeyPair(DEFAULT_AUTH_KEY, DEFAULT_ENCRYPTION_KEY)

        if isinstance(source, CookieCodec):
            if 0 < source.max_age < options.session_life_time:
                logger.warning(
                    "Cookie codec max_age (%ds) is shorter than session_life_time (%ds); "
                    "sessions will fail to decode before they expire",
                    source.max_age,
                    options.session_life_time,
                )
            return source

        # The signed timestamp must outlive the session itself
        max_age = max(DEFAULT_MAX_AGE, options.session_life_time)
        try:
            return CookieCodec(source.auth_key, source.encryption_key, max_age=max_age)
        except ValueError as exc:
            raise ConfigError(f"invalid session keys: {exc}") from exc
