"""
Login and logout endpoints.
"""

import inspect
import logging

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import PlainTextResponse, RedirectResponse, Response

from ..config import AttarOptions
from ..errors import AuthRejected, DecodeError
from ..session import CookieStore
from ..session.values import Clock, local_now, login_values
from .verifiers import Verifier

logger = logging.getLogger(__name__)


class AuthHandler:
    """Checks login form submissions and mints session cookies."""

    def __init__(
        self,
        store: CookieStore,
        verifier: Verifier,
        options: AttarOptions,
        clock: Clock = local_now,
    ):
        self.store = store
        self.verifier = verifier
        self.options = options
        self.clock = clock

    async def authenticate(self, user: str, password: str) -> None:
        """
        Run the verifier.

        Sync verifiers go to the threadpool since they may hit a database.

        Raises:
            AuthRejected: verifier returned a false value
        """
        if inspect.iscoroutinefunction(self.verifier):
            ok = await self.verifier(user, password)
        else:
            ok = await run_in_threadpool(self.verifier, user, password)
            if inspect.isawaitable(ok):
                ok = await ok
        if not ok:
            raise AuthRejected(user)

    async def login(self, request: Request) -> Response:
        """Handle login form submission."""
        login_route = self.options.login_route
        form = await request.form()
        user = _form_text(form, self.options.login_field_user)
        password = _form_text(form, self.options.login_field_password)

        try:
            await self.authenticate(user, password)
        except AuthRejected:
            logger.info("Login rejected for user %r", user)
            return RedirectResponse(url=login_route, status_code=302)

        try:
            session = self.store.get(request, self.options.session_name)
        except DecodeError as exc:
            logger.warning("Cannot load session on login: %s", exc)
            return PlainTextResponse(str(exc), status_code=500)

        session.update(
            login_values(request, user, self.clock(), self.options.login_time_utc)
        )

        response = RedirectResponse(url=self.options.redirect_after_login, status_code=302)
        session.save(response)
        logger.info("User %r logged in", user)
        return response

    async def logout(self, request: Request) -> Response:
        """Drop the session cookie and go back to the login page."""
        response = RedirectResponse(url=self.options.login_route, status_code=302)
        self.store.clear(response, self.options.session_name)
        return response


def _form_text(form, field: str) -> str:
    value = form.get(field, "")
    # File uploads are not credentials
    if not isinstance(value, str):
        return ""
    return value
