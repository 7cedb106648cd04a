"""Settings for the token issuer and the InboxAuth server (pydantic-settings).

Values are read from ``INBOXAUTH_``-prefixed environment variables or a ``.env``
file in the working directory.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IssuerSettings(BaseSettings):
    """Signing keys and token lifetimes."""

    model_config = SettingsConfigDict(
        env_prefix="INBOXAUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Access and refresh tokens are signed with different secrets
    jwt_secret: str = "dev-access-secret-change-me-0123456789"
    jwt_refresh_secret: str = "dev-refresh-secret-change-me-012345678"
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "inboxauth"

    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    rotate_refresh_tokens: bool = False

    @model_validator(mode="after")
    def _check_secrets(self) -> IssuerSettings:
        if self.jwt_secret == self.jwt_refresh_secret:
            raise ValueError("jwt_secret and jwt_refresh_secret must differ")
        return self

    @property
    def access_token_lifetime(self) -> timedelta:
        return timedelta(minutes=self.access_token_expire_minutes)

    @property
    def refresh_token_lifetime(self) -> timedelta:
        return timedelta(days=self.refresh_token_expire_days)


class ServerSettings(IssuerSettings):
    """Issuer settings plus HTTP server, CORS, logging and demo-user options."""

    app_name: str = "InboxAuth API"
    api_prefix: str = "/api"
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"

    # Vite dev server of the dashboard frontend
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    demo_user_email: str | None = "demo@example.com"
    demo_user_password: str = "demo123"
    demo_user_name: str = "Demo User"
    users_file: Path | None = None

    # OAuth client id of the dashboard; Google sign-in is disabled when unset
    google_client_id: str | None = None

    @property
    def api_prefix_normalized(self) -> str:
        """Return ``api_prefix`` with a leading slash and no trailing slash.

        An empty prefix, or a bare ``/``, becomes ``""``.
        """
        pref = (self.api_prefix or "").strip().strip("/")
        return f"/{pref}" if pref else ""
