"""
Configuration management.
Options are frozen once built; values come from keyword arguments,
ATTAR_* environment variables or a .env file.
"""

from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SESSION_NAME = "attar-session"
DEFAULT_SESSION_LIFE_TIME = 86400  # seconds


class AttarOptions(BaseSettings):
    """Cookie, session and login form options."""

    model_config = SettingsConfigDict(
        env_prefix="ATTAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Cookie attributes
    cookie_path: str = ""
    cookie_domain: str = ""
    cookie_max_age: int = 0  # 0 = browser session cookie, <0 = delete
    cookie_secure: bool = False
    cookie_http_only: bool = False
    cookie_same_site: Optional[Literal["lax", "strict", "none"]] = None

    # Session
    session_name: str = DEFAULT_SESSION_NAME
    session_life_time: int = Field(default=DEFAULT_SESSION_LIFE_TIME, ge=0)
    bind_useragent: bool = True
    bind_user_host: bool = True
    login_time_utc: bool = False

    # Login form
    login_field_user: str = "login"
    login_field_password: str = "password"

    # Routes
    login_route: str = ""
    logout_route: str = ""
    redirect_after_login: str = "/"

    # Keys (optional here, may be passed to the builder instead)
    auth_key: Optional[SecretStr] = None
    encryption_key: Optional[SecretStr] = None

    @field_validator("login_route", "logout_route")
    @classmethod
    def _check_route(cls, value: str) -> str:
        if value and not value.startswith("/"):
            raise ValueError("route must start with '/'")
        return value

    @field_validator("session_name")
    @classmethod
    def _check_session_name(cls, value: str) -> str:
        if not value:
            raise ValueError("session_name must not be empty")
        return value
