"""Exception classes shared by the InboxAuth server and client.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

from typing import Any


class InboxAuthError(Exception):
    """Base exception for InboxAuth errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Any | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.status_code = status_code


class ValidationError(InboxAuthError):
    """Raised when request validation fails."""

    def __init__(
        self, message: str, details: Any | None = None, status_code: int = 400
    ) -> None:
        super().__init__(message, "VALIDATION_ERROR", details, status_code)


class AuthenticationError(InboxAuthError):
    """Raised when authentication fails."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Any | None = None,
        code: str = "AUTHENTICATION_ERROR",
    ) -> None:
        super().__init__(message, code, details, 401)


class UnauthenticatedError(AuthenticationError):
    """Raised when no usable credential was presented."""

    def __init__(
        self, message: str = "Credentials are required", details: Any | None = None
    ) -> None:
        super().__init__(message, details, "UNAUTHENTICATED")


class InvalidCredentialError(AuthenticationError):
    """Raised when the presented credential does not match a user."""

    def __init__(
        self, message: str = "Invalid email or password", details: Any | None = None
    ) -> None:
        super().__init__(message, details, "INVALID_CREDENTIAL")


class AccessTokenError(AuthenticationError):
    """Access token rejected; the client may refresh and retry once."""


class AccessTokenExpiredError(AccessTokenError):
    """Raised when the access token has expired."""

    def __init__(
        self, message: str = "Access token expired", details: Any | None = None
    ) -> None:
        super().__init__(message, details, "ACCESS_TOKEN_EXPIRED")


class AccessTokenInvalidError(AccessTokenError):
    """Raised when the access token is absent, malformed or badly signed."""

    def __init__(
        self, message: str = "Invalid access token", details: Any | None = None
    ) -> None:
        super().__init__(message, details, "ACCESS_TOKEN_INVALID")


class SessionEndedError(AuthenticationError):
    """The refresh token can no longer be used; the user must log in again."""


class RefreshRevokedError(SessionEndedError):
    """Raised when the refresh token is unknown to the server or was revoked."""

    def __init__(
        self, message: str = "Refresh token revoked", details: Any | None = None
    ) -> None:
        super().__init__(message, details, "REFRESH_REVOKED")


class RefreshExpiredError(SessionEndedError):
    """Raised when the refresh token has expired."""

    def __init__(
        self, message: str = "Refresh token expired", details: Any | None = None
    ) -> None:
        super().__init__(message, details, "REFRESH_EXPIRED")


class RefreshInvalidError(SessionEndedError):
    """Raised when the refresh token fails signature or claim checks."""

    def __init__(
        self, message: str = "Invalid refresh token", details: Any | None = None
    ) -> None:
        super().__init__(message, details, "REFRESH_INVALID")


class RefreshTokenMissingError(SessionEndedError):
    """Raised when the client holds no refresh token at all."""

    def __init__(
        self, message: str = "No refresh token stored", details: Any | None = None
    ) -> None:
        super().__init__(message, details, "REFRESH_MISSING")


class NotFoundError(InboxAuthError):
    """Raised when a resource is not found."""

    def __init__(
        self, message: str = "Resource not found", details: Any | None = None
    ) -> None:
        super().__init__(message, "NOT_FOUND_ERROR", details, 404)


class RateLimitError(InboxAuthError):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message, "RATE_LIMIT_ERROR", details, 429)
        self.retry_after = retry_after


class ServerError(InboxAuthError):
    """Raised when a server error occurs."""

    def __init__(
        self,
        message: str = "Internal server error",
        details: Any | None = None,
        status_code: int = 500,
    ) -> None:
        super().__init__(message, "SERVER_ERROR", details, status_code)


class NetworkError(InboxAuthError):
    """Raised when a network error occurs."""

    def __init__(
        self, message: str = "Network error", details: Any | None = None
    ) -> None:
        super().__init__(message, "NETWORK_ERROR", details)


class TimeoutError(InboxAuthError):  # noqa: A001
    """Raised when a request times out."""

    def __init__(
        self, message: str = "Request timeout", details: Any | None = None
    ) -> None:
        super().__init__(message, "TIMEOUT_ERROR", details)


_AUTH_ERRORS_BY_CODE: dict[str, type[AuthenticationError]] = {
    "UNAUTHENTICATED": UnauthenticatedError,
    "INVALID_CREDENTIAL": InvalidCredentialError,
    "ACCESS_TOKEN_EXPIRED": AccessTokenExpiredError,
    "ACCESS_TOKEN_INVALID": AccessTokenInvalidError,
    "REFRESH_REVOKED": RefreshRevokedError,
    "REFRESH_EXPIRED": RefreshExpiredError,
    "REFRESH_INVALID": RefreshInvalidError,
    "REFRESH_MISSING": RefreshTokenMissingError,
}


def create_error_from_response(
    status_code: int,
    error_response: dict[str, Any | None] | None = None,
    default_message: str | None = None,
) -> InboxAuthError:
    """Create an appropriate error instance based on HTTP status code and error response."""
    message = (error_response or {}).get(
        "message", default_message or "An error occurred"
    )
    code = (error_response or {}).get("code", "UNKNOWN_ERROR")
    details = (error_response or {}).get("details")

    # Ensure message and code are strings
    message_str = str(message) if message is not None else "An error occurred"
    code_str = str(code) if code is not None else "UNKNOWN_ERROR"

    if status_code in (400, 422):
        return ValidationError(message_str, details, status_code)
    elif status_code == 401:
        error_cls = _AUTH_ERRORS_BY_CODE.get(code_str)
        if error_cls is None:
            return AuthenticationError(message_str, details)
        return error_cls(message_str, details)
    elif status_code == 404:
        return NotFoundError(message_str, details)
    elif status_code == 429:
        retry_after = (error_response or {}).get("retry_after")
        return RateLimitError(message_str, retry_after, details)
    elif status_code >= 500:
        return ServerError(message_str, details, status_code)
    else:
        return InboxAuthError(message_str, code_str, details, status_code)


def is_retryable_error(error: Exception) -> bool:
    """Check if an error is retryable (network errors and 5xx server errors)."""
    if isinstance(error, (NetworkError, TimeoutError)):
        return True

    if isinstance(error, InboxAuthError) and error.status_code:
        return error.status_code >= 500

    return False
