"""Test configuration and common utilities.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import pytest
import respx
from fastapi import FastAPI

from inboxauth import InboxAuthClient, TokenIssuer
from inboxauth.config import IssuerSettings, ServerSettings
from inboxauth.server import create_app
from inboxauth.server.users import UserDirectory

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)

    def set(self, when: datetime) -> None:
        self.now = when


@pytest.fixture
def clock() -> FrozenClock:
    """Return a clock frozen on a whole second.

    Returns:
        FrozenClock: The controllable clock.

    """
    return FrozenClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def issuer_settings() -> IssuerSettings:
    """Return issuer settings independent of the environment."""
    return IssuerSettings(
        jwt_secret="test-access-secret-0123456789abcdef",
        jwt_refresh_secret="test-refresh-secret-0123456789abcdef",
        access_token_expire_minutes=15,
        refresh_token_expire_days=7,
        _env_file=None,
    )


@pytest.fixture
def issuer(issuer_settings: IssuerSettings, clock: FrozenClock) -> TokenIssuer:
    """Return a token issuer driven by the frozen clock."""
    return TokenIssuer(issuer_settings, clock=clock)


@pytest.fixture
def server_settings() -> ServerSettings:
    """Return server settings with a fast-to-build demo user."""
    return ServerSettings(
        jwt_secret="test-access-secret-0123456789abcdef",
        jwt_refresh_secret="test-refresh-secret-0123456789abcdef",
        demo_user_email="demo@example.com",
        demo_user_password="demo123",
        demo_user_name="Demo User",
        _env_file=None,
    )


@pytest.fixture
def users(server_settings: ServerSettings) -> UserDirectory:
    """Return the user directory seeded with the demo user."""
    return UserDirectory.from_settings(server_settings)


@pytest.fixture
def app(
    server_settings: ServerSettings, users: UserDirectory, clock: FrozenClock
) -> FastAPI:
    """Return the server app with a frozen clock."""
    return create_app(server_settings, users=users, clock=clock)


@pytest.fixture
def base_url() -> str:
    """Return base URL for test server.

    Returns:
        str: The base URL for testing.

    """
    return "https://api.inboxauth.test/api"


@pytest.fixture
async def client(base_url: str) -> AsyncGenerator[InboxAuthClient, None]:
    """Create test client.

    Yields:
        InboxAuthClient: Configured test client.

    """
    async with InboxAuthClient(
        base_url=base_url,
        timeout=5.0,
        retries=0,
    ) as client:
        yield client


@pytest.fixture
def mock_responses() -> Generator[Any, None, None]:
    """Mock HTTP responses.

    Yields:
        The mock router for HTTP requests.

    """
    with respx.mock:
        yield respx


@pytest.fixture
def sample_login_response() -> dict[str, Any]:
    """Sample login response.

    Returns:
        dict[str, Any]: Sample login response data.

    """
    return {
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "token_type": "Bearer",
        "expires_in": 900,
        "user": {
            "id": "user-demo",
            "email": "demo@example.com",
            "name": "Demo User",
        },
    }
