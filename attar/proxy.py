"""
Admission middleware.

Every HTTP request either reaches the wrapped application or is redirected
to the login route. The login and logout routes always pass through, so a
broken cookie can still be cleared. Decision order for any other request:

    load cookie      -> decode error        -> 500
    loginTime key    -> absent              -> 302
    session age      -> unparseable         -> 500
                     -> older than lifetime -> 302
    user agent bind  -> missing / differs   -> 302
    user host bind   -> missing / differs   -> 302
    otherwise        -> admitted
"""

import logging
import math
from datetime import datetime
from typing import Mapping, Optional

from starlette.requests import HTTPConnection
from starlette.responses import PlainTextResponse, RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from .config import AttarOptions
from .errors import AdmissionDenied, DecodeError, TimeParseError
from .session.values import (
    LOGIN_TIME,
    USER,
    USER_HOST,
    USERAGENT,
    client_host,
    parse_login_time,
    user_agent,
)

logger = logging.getLogger(__name__)


SESSION_SCOPE_KEY = "attar.session"
USER_SCOPE_KEY = "attar.user"


def check_session(
    values: Mapping[str, str],
    useragent: str,
    host: str,
    now: datetime,
    options: AttarOptions,
) -> datetime:
    """
    Decide whether session ``values`` admit a request.

    Args:
        values: Decoded session values
        useragent: User-Agent of the current request
        host: Remote IP of the current request
        now: Current time (aware)
        options: Lifetime and binding settings

    Returns:
        The session login time

    Raises:
        AdmissionDenied: no login time, expired, or fingerprint mismatch
        TimeParseError: login time present but not RFC 3339
    """
    if LOGIN_TIME not in values:
        raise AdmissionDenied("no session")

    login_time = parse_login_time(values[LOGIN_TIME])

    # Whole seconds; an age equal to the lifetime is still valid
    age = math.floor((now - login_time).total_seconds())
    if age > options.session_life_time:
        raise AdmissionDenied(f"session expired {age - options.session_life_time}s ago")

    if options.bind_useragent:
        if USERAGENT not in values:
            raise AdmissionDenied("session has no user agent")
        if values[USERAGENT] != useragent:
            raise AdmissionDenied("user agent mismatch")

    if options.bind_user_host:
        if USER_HOST not in values:
            raise AdmissionDenied("session has no user host")
        if values[USER_HOST] != host:
            raise AdmissionDenied("user host mismatch")

    return login_time


class AdmissionMiddleware:
    """
    ASGI middleware guarding everything except the login and logout routes.

    Usage:
        app.add_middleware(AdmissionMiddleware, attar=attar)
    """

    def __init__(self, app: ASGIApp, attar):
        self.app = app
        self.attar = attar

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        attar = self.attar
        options = attar.options

        if scope["path"] == options.login_route or (
            options.logout_route and scope["path"] == options.logout_route
        ):
            await self.app(scope, receive, send)
            return

        conn = HTTPConnection(scope)

        try:
            session = attar.store.get(conn, options.session_name)
            check_session(
                session,
                useragent=user_agent(conn),
                host=client_host(conn),
                now=attar.clock(),
                options=options,
            )
        except AdmissionDenied as exc:
            logger.debug("Redirecting %s to login: %s", scope["path"], exc.reason)
            response = RedirectResponse(url=options.login_route, status_code=302)
            await response(scope, receive, send)
            return
        except (DecodeError, TimeParseError) as exc:
            logger.warning("Rejecting %s: %s", scope["path"], exc)
            response = PlainTextResponse(str(exc), status_code=500)
            await response(scope, receive, send)
            return

        scope[SESSION_SCOPE_KEY] = dict(session)
        scope[USER_SCOPE_KEY] = session.get(USER, "")
        await self.app(scope, receive, send)


def current_user(conn: HTTPConnection) -> Optional[str]:
    """Username of the admitted session, None outside the middleware."""
    return conn.scope.get(USER_SCOPE_KEY)
