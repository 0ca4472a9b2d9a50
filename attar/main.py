"""
Example application guarded by attar.

Login with user / qwerty. Session and cookie live for 30 seconds.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic_settings import BaseSettings, SettingsConfigDict

from .auth import simple_verifier
from .config import AttarOptions
from .core import Attar, AttarBuilder
from .proxy import AdmissionMiddleware, current_user


class ExampleSettings(BaseSettings):
    """Server settings for the example application."""

    model_config = SettingsConfigDict(
        env_prefix="ATTAR_EXAMPLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8082
    log_level: str = "INFO"


settings = ExampleSettings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

EXAMPLE_OPTIONS = dict(
    cookie_path="/",
    cookie_max_age=30,
    cookie_http_only=True,
    session_name="test-session",
    session_life_time=30,
    login_route="/login",
    logout_route="/logout",
)


def build_attar(options: Optional[AttarOptions] = None) -> Attar:
    """Attar for the example: keys from ATTAR_* settings, public defaults otherwise."""
    options = options or AttarOptions(**EXAMPLE_OPTIONS)
    return (
        AttarBuilder(options)
        .verifier(simple_verifier({"user": "qwerty"}))
        .allow_default_keys()
        .build()
    )


def create_app(attar: Optional[Attar] = None) -> FastAPI:
    """Create the example app."""
    attar = attar or build_attar()
    options = attar.options

    app = FastAPI(title="Attar example", docs_url=None, redoc_url=None)
    app.include_router(attar.router())
    app.add_middleware(AdmissionMiddleware, attar=attar)

    @app.get("/", response_class=HTMLResponse)
    async def main_page(request: Request):
        """Main page, only reachable with a session."""
        return templates.TemplateResponse(
            request,
            "index.html",
            {"user": current_user(request), "logout_route": options.logout_route},
        )

    @app.get(options.login_route, response_class=HTMLResponse)
    async def login_page(request: Request):
        """Login form."""
        return templates.TemplateResponse(
            request,
            "login.html",
            {
                "login_route": options.login_route,
                "user_field": options.login_field_user,
                "password_field": options.login_field_password,
            },
        )

    logger.info("Attar example ready, login route %s", options.login_route)
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
    )
