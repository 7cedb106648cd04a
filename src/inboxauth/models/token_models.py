"""Token models for InboxAuth.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from typing import Literal

from pydantic import BaseModel


class TokenClaims(BaseModel):
    """Decoded claims of an access or refresh token."""

    sub: str
    type: Literal["access", "refresh"]
    iat: int
    exp: int
    jti: str
    iss: str | None = None
    email: str | None = None


class TokenPair(BaseModel):
    """Access and refresh token minted together at login."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class RefreshTokenRequest(BaseModel):
    """Refresh token request model."""

    refresh_token: str


class RefreshResponse(BaseModel):
    """Response of a refresh exchange.

    ``refresh_token`` is only set when the issuer rotates refresh tokens.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_token: str | None = None


class LogoutRequest(BaseModel):
    """Logout request model."""

    refresh_token: str | None = None
