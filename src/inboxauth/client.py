"""InboxAuth client using service composition.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

from typing import Any, Self

import httpx

from ._auth import AuthService
from ._base import BaseClient, RequestConfig
from ._coordinator import RefreshCoordinator, SessionEndHandler
from ._storage import TokenStorage


class InboxAuthClient:
    """Async client for the email dashboard API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        retries: int = 3,
        storage: TokenStorage | None = None,
        on_session_end: SessionEndHandler | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize InboxAuth client.

        Args:
            base_url: Base URL of the API, including its prefix (e.g. ``/api``)
            timeout: Request timeout in seconds
            retries: Number of retry attempts for failed requests
            storage: Durable storage for the refresh token (in-memory if None)
            on_session_end: Called with the failure when the session ends
            transport: Optional httpx transport

        """
        self._client = BaseClient(
            base_url=base_url,
            timeout=timeout,
            retries=retries,
            storage=storage,
            on_session_end=on_session_end,
            transport=transport,
        )

        self.auth = AuthService(self._client)

    async def __aenter__(self) -> Self:
        """Async context manager entry.

        Returns:
            The client instance.

        """
        await self._client.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit."""
        await self._client.__aexit__(exc_type, exc_val, exc_tb)

    async def close(self) -> None:
        """Close the client and clean up resources."""
        await self._client.close()

    @property
    def coordinator(self) -> RefreshCoordinator:
        return self._client.coordinator

    def set_access_token(self, token: str) -> None:
        """Set access token for authenticated requests."""
        self._client.set_access_token(token)

    def clear_access_token(self) -> None:
        """Clear the stored access token."""
        self._client.clear_access_token()

    def get_access_token(self) -> str | None:
        """Get the current access token.

        Returns:
            Current access token or None if not set.

        """
        return self._client.get_access_token()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Call any protected endpoint of the API.

        The access token is attached and renewed transparently.

        Returns:
            Parsed JSON response.

        """
        config = RequestConfig(json_data=json, params=params, timeout=timeout)
        return await self._client.make_request(method, endpoint, config=config)

    async def health_check(self) -> dict[str, Any]:
        """Check server health status.

        Returns:
            Server health information.

        """
        config = RequestConfig(authenticated=False)
        return await self._client.make_request("GET", "/health", config=config)
