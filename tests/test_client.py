"""Tests for the InboxAuth client: bearer handling and transparent refresh.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from inboxauth import (
    AccessTokenExpiredError,
    InboxAuthClient,
    InvalidCredentialError,
    MemoryTokenStorage,
    NetworkError,
    NotFoundError,
    RefreshRevokedError,
    RefreshState,
    RefreshTokenMissingError,
    ServerError,
    TimeoutError as AuthTimeoutError,
    ValidationError,
)

INBOX = "/mail/inbox"


def error_body(code: str, message: str = "rejected") -> dict:
    return {"error": {"code": code, "message": message, "details": None}, "request_id": "req-1"}


def expired_unless(token: str):
    """Protected endpoint accepting only ``token``."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") == f"Bearer {token}":
            return httpx.Response(200, json={"messages": [], "seen_with": token})
        return httpx.Response(401, json=error_body("ACCESS_TOKEN_EXPIRED"))

    return handler


def slow_refresh(access_token: str = "access-new", refresh_token: str | None = None):
    """Refresh endpoint that takes a moment, so concurrent callers pile up."""

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.01)
        body = {"access_token": access_token, "token_type": "Bearer", "expires_in": 900}
        if refresh_token:
            body["refresh_token"] = refresh_token
        return httpx.Response(200, json=body)

    return handler


async def slow_refusal(request: httpx.Request) -> httpx.Response:
    await asyncio.sleep(0.01)
    return httpx.Response(401, json=error_body("REFRESH_REVOKED"))


@pytest.fixture
def logged_in(client):
    client.coordinator.set_tokens("access-old", "refresh-1")
    return client


class TestArchitecture:
    """Client composition and token accessors."""

    def test_client_initialization(self, base_url):
        client = InboxAuthClient(base_url)
        assert hasattr(client, "auth")
        assert client.coordinator.state is RefreshState.IDLE

    async def test_client_context_manager(self, base_url):
        async with InboxAuthClient(base_url) as client:
            assert client.get_access_token() is None

    def test_token_management(self, base_url):
        client = InboxAuthClient(base_url)
        client.set_access_token("mock-test-token-123")
        assert client.get_access_token() == "mock-test-token-123"

        client.clear_access_token()
        assert client.get_access_token() is None


class TestBearer:
    """Authorization header handling."""

    async def test_access_token_attached(self, logged_in, mock_responses, base_url):
        route = mock_responses.get(f"{base_url}{INBOX}").mock(
            return_value=httpx.Response(200, json={"messages": []})
        )

        await logged_in.request("GET", INBOX)

        assert route.calls.last.request.headers["Authorization"] == "Bearer access-old"

    async def test_base_path_kept(self, logged_in, mock_responses):
        route = mock_responses.get("https://api.inboxauth.test/api/auth/me").mock(
            return_value=httpx.Response(200, json={"id": "user-demo"})
        )
        await logged_in.auth.me()
        assert route.called

    async def test_health_check_is_unauthenticated(self, logged_in, mock_responses, base_url):
        route = mock_responses.get(f"{base_url}/health").mock(
            return_value=httpx.Response(200, json={"status": "healthy"})
        )

        assert await logged_in.health_check() == {"status": "healthy"}
        assert "Authorization" not in route.calls.last.request.headers


class TestTransparentRefresh:
    """Expired access tokens are renewed and the call replayed."""

    async def test_expired_token_refreshed_and_replayed(self, logged_in, mock_responses, base_url):
        inbox = mock_responses.get(f"{base_url}{INBOX}").mock(
            side_effect=expired_unless("access-new")
        )
        refresh = mock_responses.post(f"{base_url}/auth/refresh").mock(
            side_effect=slow_refresh()
        )

        result = await logged_in.request("GET", INBOX)

        assert result["seen_with"] == "access-new"
        assert inbox.call_count == 2
        assert refresh.call_count == 1
        assert json.loads(refresh.calls.last.request.content) == {"refresh_token": "refresh-1"}
        assert "Authorization" not in refresh.calls.last.request.headers
        assert logged_in.get_access_token() == "access-new"

    async def test_concurrent_failures_share_one_refresh(self, logged_in, mock_responses, base_url):
        inbox = mock_responses.get(f"{base_url}{INBOX}").mock(
            side_effect=expired_unless("access-new")
        )
        refresh = mock_responses.post(f"{base_url}/auth/refresh").mock(
            side_effect=slow_refresh()
        )

        results = await asyncio.gather(*(logged_in.request("GET", INBOX) for _ in range(10)))

        assert refresh.call_count == 1
        assert [r["seen_with"] for r in results] == ["access-new"] * 10
        replays = [
            call.request
            for call in inbox.calls
            if call.request.headers["Authorization"] == "Bearer access-new"
        ]
        assert len(replays) == 10

    async def test_replay_is_attempted_only_once(self, logged_in, mock_responses, base_url):
        inbox = mock_responses.get(f"{base_url}{INBOX}").mock(
            return_value=httpx.Response(401, json=error_body("ACCESS_TOKEN_EXPIRED"))
        )
        refresh = mock_responses.post(f"{base_url}/auth/refresh").mock(
            side_effect=slow_refresh()
        )

        with pytest.raises(AccessTokenExpiredError):
            await logged_in.request("GET", INBOX)

        assert inbox.call_count == 2
        assert refresh.call_count == 1

    async def test_rotated_refresh_token_stored(self, logged_in, mock_responses, base_url):
        mock_responses.get(f"{base_url}{INBOX}").mock(side_effect=expired_unless("access-new"))
        mock_responses.post(f"{base_url}/auth/refresh").mock(
            side_effect=slow_refresh(refresh_token="refresh-2")
        )

        await logged_in.request("GET", INBOX)

        assert logged_in.coordinator.storage.get_refresh_token() == "refresh-2"

    async def test_explicit_refresh(self, logged_in, mock_responses, base_url):
        refresh = mock_responses.post(f"{base_url}/auth/refresh").mock(
            side_effect=slow_refresh()
        )

        assert await logged_in.auth.refresh() == "access-new"
        assert refresh.call_count == 1

    async def test_other_errors_do_not_refresh(self, logged_in, mock_responses, base_url):
        mock_responses.get(f"{base_url}{INBOX}").mock(
            return_value=httpx.Response(404, json=error_body("NOT_FOUND_ERROR"))
        )
        refresh = mock_responses.post(f"{base_url}/auth/refresh")

        with pytest.raises(NotFoundError):
            await logged_in.request("GET", INBOX)
        assert not refresh.called


class TestSessionEnd:
    """A refused refresh ends the session."""

    async def test_refused_refresh_clears_tokens(self, base_url, mock_responses):
        ended: list[Exception] = []
        storage = MemoryTokenStorage()
        async with InboxAuthClient(
            base_url, retries=0, storage=storage, on_session_end=ended.append
        ) as client:
            client.coordinator.set_tokens("access-old", "refresh-1")
            mock_responses.get(f"{base_url}{INBOX}").mock(
                return_value=httpx.Response(401, json=error_body("ACCESS_TOKEN_EXPIRED"))
            )
            mock_responses.post(f"{base_url}/auth/refresh").mock(side_effect=slow_refusal)

            results = await asyncio.gather(
                *(client.request("GET", INBOX) for _ in range(3)), return_exceptions=True
            )

        assert all(isinstance(r, RefreshRevokedError) for r in results)
        assert client.get_access_token() is None
        assert storage.get_refresh_token() is None
        assert len(ended) == 1
        assert isinstance(ended[0], RefreshRevokedError)

    async def test_no_refresh_token(self, client, mock_responses, base_url):
        client.set_access_token("access-old")
        mock_responses.get(f"{base_url}{INBOX}").mock(
            return_value=httpx.Response(401, json=error_body("ACCESS_TOKEN_EXPIRED"))
        )
        refresh = mock_responses.post(f"{base_url}/auth/refresh")

        with pytest.raises(RefreshTokenMissingError):
            await client.request("GET", INBOX)
        assert not refresh.called


class TestAuthService:
    """Login and logout."""

    async def test_login_stores_tokens(self, client, mock_responses, base_url, sample_login_response):
        route = mock_responses.post(f"{base_url}/auth/login").mock(
            return_value=httpx.Response(200, json=sample_login_response)
        )

        result = await client.auth.login("demo@example.com", "demo123")

        assert result["user"]["id"] == "user-demo"
        assert client.get_access_token() == "access-1"
        assert client.coordinator.storage.get_refresh_token() == "refresh-1"
        assert json.loads(route.calls.last.request.content) == {
            "email": "demo@example.com",
            "password": "demo123",
        }

    async def test_bad_credential_does_not_refresh(self, logged_in, mock_responses, base_url):
        mock_responses.post(f"{base_url}/auth/login").mock(
            return_value=httpx.Response(401, json=error_body("INVALID_CREDENTIAL"))
        )
        refresh = mock_responses.post(f"{base_url}/auth/refresh")

        with pytest.raises(InvalidCredentialError):
            await logged_in.auth.login("demo@example.com", "wrong")
        assert not refresh.called

    async def test_logout_revokes_and_clears(self, logged_in, mock_responses, base_url):
        route = mock_responses.post(f"{base_url}/auth/logout").mock(
            return_value=httpx.Response(200, json={"success": True, "message": "Logged out successfully"})
        )

        result = await logged_in.auth.logout()

        assert result["success"] is True
        assert json.loads(route.calls.last.request.content) == {"refresh_token": "refresh-1"}
        assert logged_in.get_access_token() is None
        assert logged_in.coordinator.storage.get_refresh_token() is None

    async def test_logout_clears_when_server_unreachable(self, logged_in, mock_responses, base_url):
        mock_responses.post(f"{base_url}/auth/logout").mock(side_effect=httpx.ConnectError("down"))

        with pytest.raises(NetworkError):
            await logged_in.auth.logout()
        assert logged_in.get_access_token() is None
        assert logged_in.coordinator.storage.get_refresh_token() is None


class TestErrorMapping:
    """HTTP and transport failures become InboxAuth errors."""

    @pytest.mark.parametrize(
        "status,code,error_cls",
        [
            (400, "VALIDATION_ERROR", ValidationError),
            (404, "NOT_FOUND_ERROR", NotFoundError),
            (500, "SERVER_ERROR", ServerError),
            (503, "SERVER_ERROR", ServerError),
        ],
    )
    async def test_status_mapping(self, logged_in, mock_responses, base_url, status, code, error_cls):
        mock_responses.get(f"{base_url}{INBOX}").mock(
            return_value=httpx.Response(status, json=error_body(code, "boom"))
        )

        with pytest.raises(error_cls) as exc_info:
            await logged_in.request("GET", INBOX)
        assert exc_info.value.status_code == status
        assert exc_info.value.message == "boom"

    async def test_non_json_error(self, logged_in, mock_responses, base_url):
        mock_responses.get(f"{base_url}{INBOX}").mock(
            return_value=httpx.Response(502, text="Bad Gateway")
        )
        with pytest.raises(ServerError) as exc_info:
            await logged_in.request("GET", INBOX)
        assert exc_info.value.message == "Bad Gateway"

    async def test_connect_error(self, logged_in, mock_responses, base_url):
        mock_responses.get(f"{base_url}{INBOX}").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(NetworkError):
            await logged_in.request("GET", INBOX)

    async def test_timeout(self, logged_in, mock_responses, base_url):
        mock_responses.get(f"{base_url}{INBOX}").mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(AuthTimeoutError):
            await logged_in.request("GET", INBOX)

    async def test_retryable_errors_are_retried(self, base_url, mock_responses, monkeypatch):
        monkeypatch.setattr("inboxauth._base._backoff_delay", lambda attempt: 0)
        route = mock_responses.get(f"{base_url}/health").mock(
            side_effect=[
                httpx.ConnectError("refused"),
                httpx.Response(503, json=error_body("SERVER_ERROR")),
                httpx.Response(200, json={"status": "healthy"}),
            ]
        )

        async with InboxAuthClient(base_url, retries=2) as client:
            assert await client.health_check() == {"status": "healthy"}
        assert route.call_count == 3
