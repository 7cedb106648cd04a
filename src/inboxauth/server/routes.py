"""Auth routes: login, Google sign-in, refresh, logout and the current user's profile.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..config import ServerSettings
from ..exceptions import ServerError, UnauthenticatedError
from ..issuer import TokenIssuer
from ..models import (
    GoogleLoginRequest,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    RefreshResponse,
    RefreshTokenRequest,
    UserInfo,
)
from . import google_signin
from .deps import get_current_user, get_issuer, get_settings, get_users
from .users import UserDirectory, UserRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])
health_router = APIRouter(tags=["Health"])


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login with email and password",
    description="Verifies the credential and issues an access/refresh token pair.",
)
def login(
    payload: LoginRequest,
    issuer: TokenIssuer = Depends(get_issuer),
    users: UserDirectory = Depends(get_users),
) -> LoginResponse:
    email = payload.email.strip()
    if not email or not payload.password:
        raise UnauthenticatedError("Email and password are required")

    user = users.authenticate(email, payload.password)
    logger.info("Login succeeded for user_id=%s", user.id)
    return _issue_login(issuer, user)


@router.post(
    "/google",
    response_model=LoginResponse,
    summary="Login with Google",
    description=(
        "Verifies a Google ID token, finds or links the matching user (creating "
        "one if needed) and issues an access/refresh token pair."
    ),
)
def login_google(
    payload: GoogleLoginRequest,
    issuer: TokenIssuer = Depends(get_issuer),
    users: UserDirectory = Depends(get_users),
    settings: ServerSettings = Depends(get_settings),
) -> LoginResponse:
    credential = payload.credential.strip()
    if not credential:
        raise UnauthenticatedError("Google credential is required")
    if not settings.google_client_id:
        raise ServerError("Google sign-in is not configured", status_code=503)

    identity = google_signin.verify_google_credential(credential, settings.google_client_id)
    user = users.find_or_link_google(identity)
    logger.info("Google login succeeded for user_id=%s", user.id)
    return _issue_login(issuer, user)


def _issue_login(issuer: TokenIssuer, user: UserRecord) -> LoginResponse:
    tokens = issuer.mint(user.id, email=user.email)
    return LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        expires_in=tokens.expires_in,
        user=user.public(),
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    response_model_exclude_none=True,
    summary="Refresh the access token",
    description="Exchanges a valid, unrevoked refresh token for a new access token.",
)
def refresh(
    payload: RefreshTokenRequest,
    issuer: TokenIssuer = Depends(get_issuer),
) -> RefreshResponse:
    return issuer.refresh(payload.refresh_token)


@router.post(
    "/logout",
    response_model=dict,
    summary="Logout",
    description="Revokes the refresh token. Always succeeds.",
)
def logout(
    payload: LogoutRequest,
    issuer: TokenIssuer = Depends(get_issuer),
) -> dict:
    if payload.refresh_token:
        issuer.revoke(payload.refresh_token)
    return {"success": True, "message": "Logged out successfully"}


@router.get(
    "/me",
    response_model=UserInfo,
    summary="Current user",
    description="Returns the user identified by the bearer access token.",
)
def me(user: UserRecord = Depends(get_current_user)) -> UserInfo:
    return user.public()


@health_router.get("/health", response_model=dict, summary="Health check")
def health() -> dict:
    return {"status": "healthy"}
