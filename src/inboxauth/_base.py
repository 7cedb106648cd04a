"""Base HTTP client for InboxAuth API operations.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, NamedTuple

import httpx

from ._coordinator import RefreshCoordinator, SessionEndHandler
from ._storage import MemoryTokenStorage, TokenStorage
from .exceptions import (
    AccessTokenError,
    InboxAuthError,
    NetworkError,
    TimeoutError as AuthTimeoutError,
    create_error_from_response,
    is_retryable_error,
)
from .models import RefreshResponse

logger = logging.getLogger(__name__)

# HTTP Error Status Constants
HTTP_SUCCESS_THRESHOLD = 400

REFRESH_ENDPOINT = "/auth/refresh"


def _backoff_delay(attempt: int) -> float:
    """Exponential backoff, capped at 10 seconds."""
    return min(2**attempt, 10)


class RequestConfig(NamedTuple):
    """Configuration for HTTP requests."""

    json_data: dict[str, Any] | None = None
    params: dict[str, Any] | None = None
    timeout: float | None = None
    retries: int | None = None
    authenticated: bool = True


class BaseClient:
    """Base HTTP client for making API requests.

    Authenticated requests carry the coordinator's access token. A request
    rejected with an access-token error is replayed once with the token the
    coordinator returns; a second rejection is raised to the caller.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retries: int = 3,
        *,
        storage: TokenStorage | None = None,
        on_session_end: SessionEndHandler | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize base HTTP client.

        Args:
            base_url: The base URL of the API
            timeout: Request timeout in seconds
            retries: Number of retry attempts for failed requests
            storage: Durable storage for the refresh token
            on_session_end: Called when a refresh fails and the session ends
            transport: Optional httpx transport (e.g. ``httpx.ASGITransport``)

        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retries = retries

        headers = {"User-Agent": "InboxAuth-Python-SDK/1.0.0"}
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        self.coordinator = RefreshCoordinator(
            self._exchange_refresh_token,
            storage if storage is not None else MemoryTokenStorage(),
            on_session_end=on_session_end,
        )

    async def __aenter__(self) -> BaseClient:
        """Async context manager entry.

        Returns:
            The client instance.

        """
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit."""
        await self._client.aclose()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    def set_access_token(self, token: str) -> None:
        """Set the access token for authenticated requests."""
        self.coordinator.set_tokens(token)

    def clear_access_token(self) -> None:
        """Clear the access token."""
        self.coordinator.clear_access_token()

    def get_access_token(self) -> str | None:
        """Get the current access token.

        Returns:
            Current access token or None if not set.

        """
        return self.coordinator.access_token

    async def _make_request_generic(
        self,
        method: str,
        endpoint: str,
        parser: Callable[[httpx.Response], Any],
        *,
        config: RequestConfig | None = None,
    ) -> Any:
        """Make an HTTP request, refreshing the access token once if rejected.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            parser: Function to parse the response
            config: Request configuration

        Returns:
            Parsed response data.

        Raises:
            InboxAuthError: For API errors, including a failed refresh
            NetworkError: For network-related errors
            AuthTimeoutError: For timeout errors

        """
        if config is None:
            config = RequestConfig()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        token = self.coordinator.access_token if config.authenticated else None

        try:
            return await self._send_with_retries(method, url, parser, config, token)
        except AccessTokenError as exc:
            if not config.authenticated:
                raise
            logger.debug("%s %s rejected (%s); renewing access token", method, url, exc.code)
            token = await self.coordinator.renew(token)

        return await self._send_with_retries(method, url, parser, config, token)

    async def _send_with_retries(
        self,
        method: str,
        url: str,
        parser: Callable[[httpx.Response], Any],
        config: RequestConfig,
        token: str | None,
    ) -> Any:
        request_timeout = config.timeout or self.timeout
        request_retries = config.retries if config.retries is not None else self.retries

        headers: dict[str, str] = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        for attempt in range(request_retries + 1):
            try:
                return await self._attempt_request_generic(
                    method,
                    url,
                    headers,
                    config,
                    request_timeout,
                    parser,
                )
            except InboxAuthError as exc:
                if attempt >= request_retries or not is_retryable_error(exc):
                    raise
                logger.warning(
                    "%s %s failed (%s), retrying (%d/%d)",
                    method,
                    url,
                    exc.code,
                    attempt + 1,
                    request_retries,
                )

            await asyncio.sleep(_backoff_delay(attempt))

        retries_msg = "Max retries exceeded"
        raise InboxAuthError(retries_msg)

    async def make_request(
        self,
        method: str,
        endpoint: str,
        *,
        config: RequestConfig | None = None,
    ) -> Any:
        """Make an HTTP request and parse the JSON response.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            config: Request configuration

        Returns:
            Parsed JSON response data.

        """
        return await self._make_request_generic(
            method, endpoint, parser=lambda r: r.json(), config=config
        )

    async def make_text_request(
        self,
        method: str,
        endpoint: str,
        *,
        config: RequestConfig | None = None,
    ) -> str:
        """Make an HTTP request expecting a text response.

        Returns:
            Text response content.

        """
        return await self._make_request_generic(
            method, endpoint, parser=lambda r: r.text, config=config
        )

    async def _exchange_refresh_token(self, refresh_token: str) -> RefreshResponse:
        """Send the refresh exchange; never retried and never re-authenticated."""
        config = RequestConfig(
            json_data={"refresh_token": refresh_token},
            retries=0,
            authenticated=False,
        )
        data = await self.make_request("POST", REFRESH_ENDPOINT, config=config)
        return RefreshResponse.model_validate(data)

    async def _attempt_request_generic(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        config: RequestConfig,
        timeout: float,
        parser: Callable[[httpx.Response], Any],
    ) -> Any:
        """Attempt a single HTTP request with generic parser.

        Returns:
            Parsed response if successful.

        Raises:
            InboxAuthError: Mapped from the error response or transport failure.

        """
        try:
            response = await self._client.request(
                method,
                url,
                json=config.json_data,
                params=config.params,
                headers=headers,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise AuthTimeoutError("Request timeout") from e
        except httpx.TransportError as e:
            raise NetworkError("Network error") from e

        if response.status_code < HTTP_SUCCESS_THRESHOLD:
            return parser(response)

        error_info = self._parse_error_response(response)
        self._raise_api_error(response.status_code, error_info)

    @staticmethod
    def _parse_error_response(response: httpx.Response) -> dict[str, Any]:
        """Parse error response from the API.

        Returns:
            Parsed error data.

        """
        try:
            error_data = response.json()
        except ValueError:
            return {"message": response.text, "code": "UNKNOWN_ERROR"}
        error = error_data.get("error") if isinstance(error_data, dict) else None
        if isinstance(error, dict):
            return error
        return {"message": response.text, "code": "UNKNOWN_ERROR"}

    @staticmethod
    def _raise_api_error(status_code: int, error_info: dict[str, Any]) -> None:
        """Raise appropriate error for API response.

        Args:
            status_code: HTTP status code
            error_info: Error information from response

        """
        raise create_error_from_response(status_code, error_info)
