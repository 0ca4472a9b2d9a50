"""
Shared test fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from attar import AdmissionMiddleware, AttarBuilder, AttarOptions, CookieCodec, current_user
from attar.auth import simple_verifier


AUTH_KEY = b"261AD9502C583BDQQQQQQQQQQQQQQQQQ"
ENCRYPTION_KEY = b"RRRRRRRRRRRRRRR3FC5C7B3D6E4DDAFF"

CLIENT_ADDR = ("10.0.0.1", 5555)
UA = "UA-1"


class FakeClock:
    """Settable time source."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


def make_options(**overrides) -> AttarOptions:
    values = dict(
        cookie_path="/",
        cookie_max_age=30,
        cookie_http_only=True,
        session_name="test-session",
        session_life_time=30,
        login_route="/login",
    )
    values.update(overrides)
    return AttarOptions(**values)


def make_attar(clock, verifier=None, **overrides):
    return (
        AttarBuilder(make_options(**overrides))
        .verifier(verifier or simple_verifier({"user": "qwerty"}))
        .keys(AUTH_KEY, ENCRYPTION_KEY)
        .clock(clock)
        .build()
    )


def make_app(attar) -> FastAPI:
    """App with a protected index and a counter on the login route."""
    app = FastAPI()
    app.state.login_page_hits = 0
    app.include_router(attar.router())
    app.add_middleware(AdmissionMiddleware, attar=attar)

    @app.get("/")
    async def index(request: Request):
        return PlainTextResponse(f"hello {current_user(request)}")

    @app.get("/login")
    async def login_page(request: Request):
        request.app.state.login_page_hits += 1
        return PlainTextResponse("login form")

    return app


def cookie_header(value: str, name: str = "test-session") -> dict:
    return {"Cookie": f"{name}={value}"}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codec() -> CookieCodec:
    return CookieCodec(AUTH_KEY, ENCRYPTION_KEY)


@pytest.fixture
def attar(clock):
    return make_attar(clock)


@pytest.fixture
def client(attar):
    """Client with a fixed remote address; redirects are not followed."""
    with TestClient(
        make_app(attar), client=CLIENT_ADDR, follow_redirects=False
    ) as client:
        yield client


def login(client, user="user", password="qwerty", ua=UA):
    return client.post(
        "/login",
        data={"login": user, "password": password},
        headers={"User-Agent": ua},
    )
