"""
Tests for the login and logout handlers.
"""

from datetime import datetime

from fastapi.testclient import TestClient

from attar.session.values import format_login_time

from .conftest import CLIENT_ADDR, UA, cookie_header, login, make_app, make_attar


def session_from(attar, resp):
    return attar.codec.decode("test-session", resp.cookies["test-session"])


class TestLogin:
    """POST to the login route."""

    def test_success_redirects_home_with_cookie(self, attar, client):
        resp = login(client)

        assert resp.status_code == 302
        assert resp.headers["location"] == "/"
        assert "test-session" in resp.cookies

    def test_success_stores_session_values(self, attar, clock, client):
        resp = login(client)

        values = session_from(attar, resp)
        assert values == {
            "user": "user",
            "loginTime": format_login_time(clock()),
            "userHost": "10.0.0.1",
            "useragent": UA,
        }
        assert datetime.fromisoformat(values["loginTime"]) == clock()

    def test_cookie_attributes_follow_options(self, client):
        resp = login(client)

        header = resp.headers["set-cookie"].lower()
        assert "max-age=30" in header
        assert "path=/" in header
        assert "httponly" in header

    def test_wrong_password(self, client):
        resp = login(client, password="wrong")

        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"
        assert "set-cookie" not in resp.headers

    def test_unknown_user(self, client):
        resp = login(client, user="admin")
        assert resp.headers["location"] == "/login"

    def test_missing_fields_go_to_verifier(self, clock):
        seen = []

        def verifier(user, password):
            seen.append((user, password))
            return False

        attar = make_attar(clock, verifier=verifier)
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            resp = client.post("/login", data={})

        assert resp.status_code == 302
        assert seen == [("", "")]

    def test_custom_form_fields(self, clock):
        attar = make_attar(clock, login_field_user="email", login_field_password="secret")
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            resp = client.post("/login", data={"email": "user", "secret": "qwerty"})

        assert resp.headers["location"] == "/"

    def test_async_verifier(self, clock):
        async def verifier(user, password):
            return password == "async"

        attar = make_attar(clock, verifier=verifier)
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            ok = login(client, password="async")
            bad = login(client, password="sync")

        assert ok.headers["location"] == "/"
        assert bad.headers["location"] == "/login"

    def test_fingerprints_stored_with_binding_off(self, clock):
        attar = make_attar(clock, bind_useragent=False, bind_user_host=False)
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            resp = login(client)

        values = session_from(attar, resp)
        assert values["userHost"] == "10.0.0.1"
        assert values["useragent"] == UA

    def test_ipv6_client_host(self, clock):
        attar = make_attar(clock)
        with TestClient(make_app(attar), client=("::1", 5555), follow_redirects=False) as client:
            resp = login(client)

        assert session_from(attar, resp)["userHost"] == "::1"

    def test_utc_login_time(self, clock):
        attar = make_attar(clock, login_time_utc=True)
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            resp = login(client)

        login_time = session_from(attar, resp)["loginTime"]
        assert login_time.endswith("+00:00")
        assert datetime.fromisoformat(login_time) == clock()

    def test_custom_redirect_after_login(self, clock):
        attar = make_attar(clock, redirect_after_login="/dashboard")
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            resp = login(client)

        assert resp.headers["location"] == "/dashboard"

    def test_bad_existing_cookie_is_500(self, client):
        client.cookies.clear()
        resp = client.post(
            "/login",
            data={"login": "user", "password": "qwerty"},
            headers={**cookie_header("garbage"), "User-Agent": UA},
        )

        assert resp.status_code == 500
        assert "test-session" in resp.text

    def test_existing_session_is_overwritten(self, attar, clock, client):
        old = attar.codec.encode("test-session", {"user": "old", "extra": "kept"})
        resp = client.post(
            "/login",
            data={"login": "user", "password": "qwerty"},
            headers={**cookie_header(old), "User-Agent": UA},
        )

        values = session_from(attar, resp)
        assert values["user"] == "user"
        assert values["extra"] == "kept"


class TestLogout:
    """Logout route clears the cookie."""

    def test_logout_clears_cookie(self, clock):
        attar = make_attar(clock, logout_route="/logout")
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            cookie = login(client).cookies["test-session"]
            resp = client.get("/logout", headers={**cookie_header(cookie), "User-Agent": UA})

        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"
        assert "max-age=0" in resp.headers["set-cookie"].lower()

    def test_logout_clears_undecodable_cookie(self, clock):
        """A broken cookie must not lock the user out of logging out."""
        attar = make_attar(clock, logout_route="/logout")
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            resp = client.get("/logout", headers={**cookie_header("garbage"), "User-Agent": UA})

        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"
        assert "max-age=0" in resp.headers["set-cookie"].lower()

    def test_logout_clears_expired_session(self, clock):
        attar = make_attar(clock, logout_route="/logout")
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            cookie = login(client).cookies["test-session"]
            client.cookies.clear()
            clock.advance(31)
            resp = client.get("/logout", headers={**cookie_header(cookie), "User-Agent": UA})

        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"
        assert "max-age=0" in resp.headers["set-cookie"].lower()

    def test_other_paths_still_guarded_with_logout_mounted(self, clock):
        attar = make_attar(clock, logout_route="/logout")
        with TestClient(make_app(attar), client=CLIENT_ADDR, follow_redirects=False) as client:
            resp = client.get("/", headers={**cookie_header("garbage"), "User-Agent": UA})

        assert resp.status_code == 500

    def test_logout_not_mounted_by_default(self, attar):
        paths = [route.path for route in attar.router().routes]
        assert paths == ["/login"]
