"""Google ID token verification for the ``/auth/google`` login.

The dashboard sends the ID token obtained from Google Sign-In; it is checked
with ``google.oauth2.id_token.verify_oauth2_token`` against the configured
client id as audience.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as grequests
from google.oauth2 import id_token

from ..exceptions import InvalidCredentialError

logger = logging.getLogger(__name__)

GOOGLE_ISSUERS = frozenset({"https://accounts.google.com", "accounts.google.com"})


@dataclass(frozen=True)
class GoogleIdentity:
    sub: str
    email: str
    name: str


def verify_google_credential(credential: str, client_id: str) -> GoogleIdentity:
    """Verify a Google ID token and return the identity it asserts.

    Raises:
        InvalidCredentialError: Bad signature, audience, issuer or expiry, or
            the token carries no email.

    """
    try:
        claims = id_token.verify_oauth2_token(
            credential,
            grequests.Request(),
            client_id,
            clock_skew_in_seconds=300,
        )
    except (ValueError, GoogleAuthError) as exc:
        logger.info("Rejected Google credential: %s", exc)
        raise InvalidCredentialError("Invalid Google credential") from exc

    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise InvalidCredentialError("Invalid Google credential issuer")
    email = claims.get("email")
    if not email:
        raise InvalidCredentialError("Google credential carries no email")

    return GoogleIdentity(
        sub=str(claims["sub"]),
        email=str(email).lower(),
        name=claims.get("name") or "Google User",
    )
