"""InboxAuth models package.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from .token_models import (
    LogoutRequest,
    RefreshResponse,
    RefreshTokenRequest,
    TokenClaims,
    TokenPair,
)
from .user_models import (
    GoogleLoginRequest,
    LoginRequest,
    LoginResponse,
    UserInfo,
)

__all__ = [
    # Token models
    "TokenClaims",
    "TokenPair",
    "RefreshTokenRequest",
    "RefreshResponse",
    "LogoutRequest",
    # User models
    "UserInfo",
    "LoginRequest",
    "GoogleLoginRequest",
    "LoginResponse",
]
