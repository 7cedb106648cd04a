"""Server-side token issuer: mint, refresh and revoke.

Access and refresh tokens are HS256 JWTs (PyJWT) signed with separate secrets.
Refresh tokens are additionally recorded in a revocation store; a refresh
token is honored only while it is both cryptographically valid and present in
that store.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol
from uuid import uuid4

import jwt

from .config import IssuerSettings
from .exceptions import (
    AccessTokenExpiredError,
    AccessTokenInvalidError,
    RefreshExpiredError,
    RefreshInvalidError,
    RefreshRevokedError,
)
from .models import RefreshResponse, TokenClaims, TokenPair

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_REQUIRED_CLAIMS = ["sub", "type", "iat", "exp", "jti"]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class RevocationStore(Protocol):
    """Maps a refresh token to the subject it was issued for."""

    def add(self, token: str, subject: str) -> None: ...

    def get(self, token: str) -> str | None: ...

    def discard(self, token: str) -> None: ...


class MemoryRevocationStore:
    """In-process revocation store.

    Guarded by a lock because FastAPI runs sync endpoints on a thread pool.
    """

    def __init__(self) -> None:
        self._tokens: dict[str, str] = {}
        self._lock = threading.Lock()

    def add(self, token: str, subject: str) -> None:
        with self._lock:
            self._tokens[token] = subject

    def get(self, token: str) -> str | None:
        with self._lock:
            return self._tokens.get(token)

    def discard(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


class _TokenExpired(Exception):
    pass


class _TokenInvalid(Exception):
    pass


class TokenIssuer:
    """Mints, refreshes and revokes token pairs."""

    def __init__(
        self,
        settings: IssuerSettings,
        store: RevocationStore | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the issuer.

        Args:
            settings: Secrets, algorithm and token lifetimes
            store: Revocation store for refresh tokens (in-memory by default)
            clock: Returns the current aware UTC datetime; injectable for tests

        """
        self.settings = settings
        self.store: RevocationStore = store if store is not None else MemoryRevocationStore()
        self._clock = clock or _now_utc

    def mint(self, subject: str, *, email: str | None = None) -> TokenPair:
        """Issue a fresh access/refresh pair for an authenticated subject.

        Args:
            subject: User identifier, already authenticated by the caller
            email: Optional subject info carried in both tokens

        Returns:
            The token pair; the refresh token is recorded in the store.

        """
        access = self._encode_access(subject, email)
        refresh = self._encode_refresh(subject, email)
        self.store.add(refresh, subject)
        logger.debug("Minted token pair for subject=%s", subject)
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            expires_in=self._access_expires_in,
        )

    def refresh(self, refresh_token: str) -> RefreshResponse:
        """Exchange a refresh token for a new access token.

        Args:
            refresh_token: Token previously returned by ``mint``

        Returns:
            A new access token for the same subject. When rotation is enabled
            the response also carries a new refresh token and the old one is
            revoked.

        Raises:
            RefreshRevokedError: The token is not in the revocation store.
            RefreshExpiredError: The token is past its expiry.
            RefreshInvalidError: Signature, issuer, type or subject mismatch.

        """
        subject = self.store.get(refresh_token)
        if subject is None:
            logger.info("Refusing refresh: token unknown or revoked")
            raise RefreshRevokedError()

        try:
            claims = self._decode(
                refresh_token, self.settings.jwt_refresh_secret, "refresh"
            )
        except _TokenExpired as exc:
            self.store.discard(refresh_token)
            logger.info("Refusing refresh for subject=%s: expired", subject)
            raise RefreshExpiredError() from exc
        except _TokenInvalid as exc:
            self.store.discard(refresh_token)
            logger.info("Refusing refresh for subject=%s: %s", subject, exc)
            raise RefreshInvalidError(details={"reason": str(exc)}) from exc

        if claims.sub != subject:
            self.store.discard(refresh_token)
            raise RefreshInvalidError(details={"reason": "subject mismatch"})

        access = self._encode_access(claims.sub, claims.email)
        new_refresh: str | None = None
        if self.settings.rotate_refresh_tokens:
            new_refresh = self._encode_refresh(claims.sub, claims.email)
            self.store.add(new_refresh, claims.sub)
            self.store.discard(refresh_token)
            logger.debug("Rotated refresh token for subject=%s", claims.sub)

        return RefreshResponse(
            access_token=access,
            expires_in=self._access_expires_in,
            refresh_token=new_refresh,
        )

    def revoke(self, refresh_token: str) -> None:
        """Forget a refresh token. Revoking an unknown token is a no-op."""
        self.store.discard(refresh_token)
        logger.debug("Revoked refresh token")

    def verify_access_token(self, token: str) -> TokenClaims:
        """Validate an access token and return its claims.

        Raises:
            AccessTokenExpiredError: The token is past its expiry.
            AccessTokenInvalidError: The token is malformed or badly signed.

        """
        try:
            return self._decode(token, self.settings.jwt_secret, "access")
        except _TokenExpired as exc:
            raise AccessTokenExpiredError() from exc
        except _TokenInvalid as exc:
            raise AccessTokenInvalidError(details={"reason": str(exc)}) from exc

    @property
    def _access_expires_in(self) -> int:
        return int(self.settings.access_token_lifetime.total_seconds())

    def _encode_access(self, subject: str, email: str | None) -> str:
        return self._encode(
            subject,
            email,
            "access",
            self.settings.access_token_lifetime,
            self.settings.jwt_secret,
        )

    def _encode_refresh(self, subject: str, email: str | None) -> str:
        return self._encode(
            subject,
            email,
            "refresh",
            self.settings.refresh_token_lifetime,
            self.settings.jwt_refresh_secret,
        )

    def _encode(
        self,
        subject: str,
        email: str | None,
        token_type: str,
        lifetime: timedelta,
        secret: str,
    ) -> str:
        now = self._clock()
        payload = {
            "sub": str(subject),
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
            "jti": str(uuid4()),
            "iss": self.settings.jwt_issuer,
        }
        if email:
            payload["email"] = email
        return jwt.encode(payload, secret, algorithm=self.settings.jwt_algorithm)

    def _decode(self, token: str, secret: str, expected_type: str) -> TokenClaims:
        # Expiry is checked against the injected clock, not PyJWT's wall clock
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.jwt_algorithm],
                issuer=self.settings.jwt_issuer,
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidTokenError as exc:
            raise _TokenInvalid(str(exc)) from exc

        if payload.get("type") != expected_type:
            raise _TokenInvalid("Wrong token type")
        try:
            claims = TokenClaims.model_validate(payload)
        except ValueError as exc:
            raise _TokenInvalid("Malformed claims") from exc

        if self._clock().timestamp() >= claims.exp:
            raise _TokenExpired()
        return claims
