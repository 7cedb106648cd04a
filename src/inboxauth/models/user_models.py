"""User models for InboxAuth.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from datetime import datetime

from pydantic import BaseModel


class UserInfo(BaseModel):
    """Public user information (never includes the password hash)."""

    id: str
    email: str
    name: str
    created_at: datetime | None = None


class LoginRequest(BaseModel):
    """Login request model.

    Blank fields are accepted here and rejected by the login route, so a
    missing credential is reported as ``UNAUTHENTICATED``.
    """

    email: str = ""
    password: str = ""


class GoogleLoginRequest(BaseModel):
    """Google sign-in request carrying the ID token from Google Sign-In."""

    credential: str = ""


class LoginResponse(BaseModel):
    """Login response model."""

    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int
    user: UserInfo
