"""
InboxAuth

Authentication token lifecycle for the email dashboard: a token issuer with
revocable refresh tokens, and an async client whose refresh coordinator sends
a single refresh exchange however many calls fail at once.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from ._coordinator import RefreshCoordinator, RefreshState
from ._storage import FileTokenStorage, MemoryTokenStorage, TokenStorage
from .client import InboxAuthClient
from .exceptions import *
from .issuer import MemoryRevocationStore, RevocationStore, TokenIssuer
from .models import *

__version__ = "1.0.0"

__all__ = [
    "InboxAuthClient",
    "RefreshCoordinator",
    "RefreshState",
    "TokenStorage",
    "MemoryTokenStorage",
    "FileTokenStorage",
    "TokenIssuer",
    "RevocationStore",
    "MemoryRevocationStore",
    # Exceptions
    "InboxAuthError",
    "ValidationError",
    "AuthenticationError",
    "UnauthenticatedError",
    "InvalidCredentialError",
    "AccessTokenError",
    "AccessTokenExpiredError",
    "AccessTokenInvalidError",
    "SessionEndedError",
    "RefreshRevokedError",
    "RefreshExpiredError",
    "RefreshInvalidError",
    "RefreshTokenMissingError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "NetworkError",
    "TimeoutError",
    # Models
    "TokenClaims",
    "TokenPair",
    "RefreshTokenRequest",
    "RefreshResponse",
    "LogoutRequest",
    "UserInfo",
    "LoginRequest",
    "GoogleLoginRequest",
    "LoginResponse",
]
