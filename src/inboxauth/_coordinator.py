"""Single-flight access-token refresh for the InboxAuth client.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from typing import Any, Awaitable, Callable

from ._storage import TokenStorage
from .exceptions import NetworkError, RefreshTokenMissingError, SessionEndedError
from .models import RefreshResponse

logger = logging.getLogger(__name__)

RefreshExchange = Callable[[str], Awaitable[RefreshResponse]]
SessionEndHandler = Callable[[Exception], Any]


class RefreshState(enum.Enum):
    """Coordinator state."""

    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshCoordinator:
    """Owns the in-memory access token and serializes refresh exchanges.

    Any number of calls that fail authorization while a refresh is in flight
    wait on the same exchange instead of starting their own. When the exchange
    succeeds the new access token is stored before any waiter resumes. When it
    fails every waiter receives the same exception, both tokens are cleared
    and ``on_session_end`` is notified.
    """

    def __init__(
        self,
        exchange: RefreshExchange,
        storage: TokenStorage,
        *,
        on_session_end: SessionEndHandler | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            exchange: Sends a refresh token to the issuer and returns its response
            storage: Durable storage holding the refresh token
            on_session_end: Called (or awaited) with the failure when the
                session cannot be renewed

        """
        self._exchange = exchange
        self._storage = storage
        self._on_session_end = on_session_end
        self._access_token: str | None = None
        self._state = RefreshState.IDLE
        self._pending: list[asyncio.Future[str]] = []
        # Bumped by clear(); a refresh started before a clear() must not
        # restore the session
        self._generation = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def pending_count(self) -> int:
        """Number of calls waiting on the in-flight refresh."""
        return len(self._pending)

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def storage(self) -> TokenStorage:
        return self._storage

    def set_tokens(self, access_token: str, refresh_token: str | None = None) -> None:
        """Install a freshly issued access token (and refresh token, if given)."""
        self._access_token = access_token
        if refresh_token:
            self._storage.set_refresh_token(refresh_token)

    def clear_access_token(self) -> None:
        self._access_token = None

    def clear(self) -> None:
        """Forget both the access token and the stored refresh token.

        A refresh already in flight is abandoned: its result is discarded and
        its waiters are rejected.
        """
        self._generation += 1
        self._access_token = None
        self._storage.clear_refresh_token()

    async def renew(self, failed_token: str | None) -> str:
        """Return an access token to replay a call that failed authorization.

        Args:
            failed_token: The access token the failed call was sent with

        Returns:
            The renewed access token.

        Raises:
            Exception: Whatever made the refresh exchange fail; the session has
                ended and local tokens are already cleared.
            SessionEndedError: ``clear()`` was called while the refresh ran
                (code ``LOGGED_OUT``); the refreshed token is discarded.

        """
        if self._state is RefreshState.REFRESHING:
            waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._pending.append(waiter)
            logger.debug("Waiting on in-flight refresh (%d queued)", len(self._pending))
            return await waiter

        # A refresh finished after the failed call was sent
        if self._access_token is not None and self._access_token != failed_token:
            return self._access_token

        self._state = RefreshState.REFRESHING
        generation = self._generation
        logger.debug("Access token rejected; starting refresh")
        try:
            refresh_token = self._storage.get_refresh_token()
            if not refresh_token:
                raise RefreshTokenMissingError()
            result = await self._exchange(refresh_token)
        except asyncio.CancelledError:
            await self._finish_failed(NetworkError("Token refresh was cancelled"), generation)
            raise
        except Exception as exc:
            await self._finish_failed(exc, generation)
            raise

        if generation != self._generation:
            error = SessionEndedError("Logged out during token refresh", code="LOGGED_OUT")
            self._reject_waiters(error)
            logger.info("Discarding refresh result; session was cleared while it ran")
            raise error

        self._succeed(result)
        return result.access_token

    def _succeed(self, result: RefreshResponse) -> None:
        self._access_token = result.access_token
        if result.refresh_token:
            self._storage.set_refresh_token(result.refresh_token)

        waiters, self._pending = self._pending, []
        self._state = RefreshState.IDLE
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(result.access_token)
        logger.info("Access token refreshed; resuming %d queued call(s)", len(waiters))

    def _reject_waiters(self, error: Exception) -> int:
        waiters, self._pending = self._pending, []
        self._state = RefreshState.IDLE
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(error)
        return len(waiters)

    async def _finish_failed(self, error: Exception, generation: int) -> None:
        # Tokens installed after a clear() belong to a newer session
        if generation != self._generation:
            self._reject_waiters(error)
            return
        await self._fail(error)

    async def _fail(self, error: Exception) -> None:
        self.clear()
        rejected = self._reject_waiters(error)
        logger.warning(
            "Token refresh failed (%s); session ended, %d queued call(s) rejected",
            getattr(error, "code", type(error).__name__),
            rejected,
        )

        if self._on_session_end is None:
            return
        try:
            outcome = self._on_session_end(error)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Session-end handler raised")
