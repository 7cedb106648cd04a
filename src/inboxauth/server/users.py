"""User directory: credential verification for the login endpoints.

Users live in memory; they can be seeded from a JSON file holding a list of
``{id, email, name, password_hash, google_id, created_at}`` objects and from
the demo-user settings. Users created by Google sign-in have no password.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from ..config import ServerSettings
from ..exceptions import InvalidCredentialError
from ..models import UserInfo
from .google_signin import GoogleIdentity

logger = logging.getLogger(__name__)

ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against an Argon2 hash."""
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


@dataclass
class UserRecord:
    id: str
    email: str
    name: str
    password_hash: str | None = None
    google_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def public(self) -> UserInfo:
        return UserInfo(id=self.id, email=self.email, name=self.name, created_at=self.created_at)


class UserDirectory:
    """Looks users up by email (for login), by Google subject and by id."""

    def __init__(self) -> None:
        self._by_email: dict[str, UserRecord] = {}
        self._by_id: dict[str, UserRecord] = {}
        self._by_google_id: dict[str, UserRecord] = {}
        self._lock = threading.Lock()

    def add(self, record: UserRecord) -> UserRecord:
        with self._lock:
            self._index(record)
        return record

    def _index(self, record: UserRecord) -> None:
        self._by_email[record.email.lower()] = record
        self._by_id[record.id] = record
        if record.google_id:
            self._by_google_id[record.google_id] = record

    def create_user(self, email: str, password: str, name: str, user_id: str | None = None) -> UserRecord:
        return self.add(
            UserRecord(
                id=user_id or _new_user_id(),
                email=email.lower(),
                name=name,
                password_hash=hash_password(password),
            )
        )

    def get(self, user_id: str) -> UserRecord | None:
        with self._lock:
            return self._by_id.get(user_id)

    def find_by_email(self, email: str) -> UserRecord | None:
        with self._lock:
            return self._by_email.get(email.lower())

    def find_by_google_id(self, google_id: str) -> UserRecord | None:
        with self._lock:
            return self._by_google_id.get(google_id)

    def authenticate(self, email: str, password: str) -> UserRecord:
        """Return the user matching the credential.

        Raises:
            InvalidCredentialError: Unknown email, wrong password, or a user
                that only signs in with Google.

        """
        user = self.find_by_email(email)
        if user is None or user.password_hash is None:
            raise InvalidCredentialError()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialError()
        return user

    def find_or_link_google(self, identity: GoogleIdentity) -> UserRecord:
        """Resolve a verified Google identity to a user.

        Matches on the Google subject first, then on email; a user found by
        email is linked to the subject. Unknown identities become new users.
        """
        with self._lock:
            user = self._by_google_id.get(identity.sub) or self._by_email.get(identity.email)
            if user is None:
                user = UserRecord(
                    id=_new_user_id(),
                    email=identity.email,
                    name=identity.name,
                    google_id=identity.sub,
                )
                self._index(user)
                logger.info("Created user_id=%s from Google sign-in", user.id)
            elif user.google_id is None:
                user.google_id = identity.sub
                self._index(user)
                logger.info("Linked Google account to user_id=%s", user.id)
            return user

    def load_file(self, path: Path) -> int:
        """Add every user listed in a JSON users file; returns how many."""
        entries: list[dict[str, Any]] = json.loads(path.read_text(encoding="utf-8"))
        for entry in entries:
            record = UserRecord(
                id=str(entry["id"]),
                email=str(entry["email"]).lower(),
                name=entry.get("name") or entry["email"],
                password_hash=entry.get("password_hash") or None,
                google_id=entry.get("google_id") or None,
            )
            if entry.get("created_at"):
                record.created_at = datetime.fromisoformat(entry["created_at"])
            self.add(record)
        logger.info("Loaded %d user(s) from %s", len(entries), path)
        return len(entries)

    @classmethod
    def from_settings(cls, settings: ServerSettings) -> UserDirectory:
        directory = cls()
        if settings.users_file is not None:
            directory.load_file(settings.users_file)
        if settings.demo_user_email and directory.find_by_email(settings.demo_user_email) is None:
            directory.create_user(
                settings.demo_user_email,
                settings.demo_user_password,
                settings.demo_user_name,
                user_id="user-demo",
            )
        return directory


def _new_user_id() -> str:
    return f"user-{uuid4().hex[:12]}"
