"""
Session value keys and the client fingerprints stored under them.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict

from starlette.requests import HTTPConnection

from ..errors import TimeParseError


USER = "user"
LOGIN_TIME = "loginTime"
USER_HOST = "userHost"
USERAGENT = "useragent"

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})\Z",
    re.ASCII,
)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current time as an aware datetime in the server's local zone."""
    return datetime.now().astimezone()


def client_host(conn: HTTPConnection) -> str:
    """
    Remote IP of the connection, without the port.

    The ASGI server reports host and port separately, so IPv6 literals
    survive intact. Empty when the server reports no client.
    """
    if conn.client is None:
        return ""
    return conn.client.host or ""


def user_agent(conn: HTTPConnection) -> str:
    """User-Agent header, empty when absent."""
    return conn.headers.get("user-agent", "")


def format_login_time(moment: datetime, utc: bool = False) -> str:
    """Format as RFC 3339 with second precision."""
    if utc:
        moment = moment.astimezone(timezone.utc)
    else:
        moment = moment.astimezone()
    return moment.isoformat(timespec="seconds")


def parse_login_time(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp.

    Only the RFC 3339 profile is accepted: extended date and time, a ``T``
    separator and a ``Z`` or ``+hh:mm`` offset. ISO 8601 basic format and
    space-separated forms are rejected.

    Raises:
        TimeParseError: not a string, not RFC 3339, or missing the UTC offset
    """
    if not isinstance(value, str):
        raise TimeParseError(f"login time {value!r} is not a string")
    match = _RFC3339.match(value)
    if match is None:
        raise TimeParseError(
            f"login time {value!r} is not RFC 3339 (date, time and UTC offset)"
        )

    year, month, day, hour, minute, second, fraction, offset = match.groups()
    try:
        if offset in ("Z", "z"):
            tz = timezone.utc
        else:
            delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6]))
            tz = timezone(-delta if offset[0] == "-" else delta)
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second),
            int((fraction or "0")[:6].ljust(6, "0")),
            tzinfo=tz,
        )
    except ValueError as exc:
        raise TimeParseError(f"cannot parse login time {value!r}: {exc}") from exc


def login_values(
    conn: HTTPConnection, user: str, now: datetime, utc: bool = False
) -> Dict[str, str]:
    """
    Values written into a freshly minted session.

    Host and user agent are always stored, even with binding switched off,
    so binding can be enabled later without forcing everyone to log in again.
    """
    return {
        USER: user,
        LOGIN_TIME: format_login_time(now, utc),
        USER_HOST: client_host(conn),
        USERAGENT: user_agent(conn),
    }
