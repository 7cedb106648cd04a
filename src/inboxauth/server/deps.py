"""FastAPI dependencies for the InboxAuth server.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import ServerSettings
from ..exceptions import AccessTokenInvalidError
from ..issuer import TokenIssuer
from ..models import TokenClaims
from .users import UserDirectory, UserRecord

# auto_error=False: a missing header must produce ACCESS_TOKEN_INVALID, not 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> ServerSettings:
    return request.app.state.settings


def get_issuer(request: Request) -> TokenIssuer:
    return request.app.state.issuer


def get_users(request: Request) -> UserDirectory:
    return request.app.state.users


def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    issuer: TokenIssuer = Depends(get_issuer),
) -> TokenClaims:
    """Validate the bearer access token and return its claims."""
    if credentials is None or not credentials.credentials:
        raise AccessTokenInvalidError("Missing bearer token")
    return issuer.verify_access_token(credentials.credentials)


def get_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    users: UserDirectory = Depends(get_users),
) -> UserRecord:
    """Resolve the token subject to a user."""
    user = users.get(claims.sub)
    if user is None:
        raise AccessTokenInvalidError("Token subject no longer exists")
    return user
