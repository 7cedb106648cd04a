"""Authentication service for InboxAuth.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

from typing import Any

from ._base import BaseClient, RequestConfig


class AuthService:
    """Service for authentication operations."""

    def __init__(self, client: BaseClient) -> None:
        """Initialize authentication service.

        Args:
            client: The base HTTP client

        """
        self._client = client

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate a user with email and password.

        The access token is kept in memory and the refresh token is written to
        the client's durable storage.

        Args:
            email: User's email address
            password: User's password

        Returns:
            Authentication response with tokens and user info.

        """
        return await self._login("/auth/login", {"email": email, "password": password})

    async def login_google(self, credential: str) -> dict[str, Any]:
        """Authenticate with an ID token obtained from Google Sign-In.

        Args:
            credential: The Google ID token

        Returns:
            Authentication response with tokens and user info.

        """
        return await self._login("/auth/google", {"credential": credential})

    async def _login(self, endpoint: str, data: dict[str, Any]) -> dict[str, Any]:
        config = RequestConfig(json_data=data, authenticated=False)
        response = await self._client.make_request("POST", endpoint, config=config)

        self._client.coordinator.set_tokens(
            response["access_token"], response.get("refresh_token")
        )
        return response

    async def refresh(self) -> str:
        """Exchange the stored refresh token for a new access token now.

        Joins an in-flight refresh if one is already running.

        Returns:
            The new access token.

        """
        coordinator = self._client.coordinator
        return await coordinator.renew(coordinator.access_token)

    async def logout(self) -> dict[str, Any]:
        """Revoke the refresh token on the server and clear local tokens.

        Local tokens are cleared even when the server cannot be reached.

        Returns:
            Logout confirmation response.

        """
        coordinator = self._client.coordinator
        refresh_token = coordinator.storage.get_refresh_token()
        try:
            config = RequestConfig(
                json_data={"refresh_token": refresh_token},
                retries=0,
                authenticated=False,
            )
            return await self._client.make_request("POST", "/auth/logout", config=config)
        finally:
            coordinator.clear()

    async def me(self) -> dict[str, Any]:
        """Get the authenticated user's profile.

        Returns:
            User information.

        """
        return await self._client.make_request("GET", "/auth/me")
