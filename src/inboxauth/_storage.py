"""Durable refresh-token storage for the InboxAuth client.

Only the refresh token is ever stored here; the access token lives in the
coordinator's memory.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

REFRESH_TOKEN_KEY = "refresh_token"


class TokenStorage(Protocol):
    """Storage for the client's refresh token."""

    def get_refresh_token(self) -> str | None: ...

    def set_refresh_token(self, token: str) -> None: ...

    def clear_refresh_token(self) -> None: ...


class MemoryTokenStorage:
    """Keeps the refresh token for the lifetime of the process."""

    def __init__(self, refresh_token: str | None = None) -> None:
        self._refresh_token = refresh_token

    def get_refresh_token(self) -> str | None:
        return self._refresh_token

    def set_refresh_token(self, token: str) -> None:
        self._refresh_token = token

    def clear_refresh_token(self) -> None:
        self._refresh_token = None


class FileTokenStorage:
    """Persists the refresh token in a JSON file readable only by its owner.

    The file holds a JSON object; the token is kept under ``refresh_token`` and
    other keys are preserved on write.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def get_refresh_token(self) -> str | None:
        token = self._load().get(REFRESH_TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set_refresh_token(self, token: str) -> None:
        data = self._load()
        data[REFRESH_TOKEN_KEY] = token
        self._save(data)

    def clear_refresh_token(self) -> None:
        data = self._load()
        if data.pop(REFRESH_TOKEN_KEY, None) is not None:
            self._save(data)

    def _load(self) -> dict[str, object]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable token file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, object]) -> None:
        # The token file is replaced atomically and is always mode 0600
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            os.fchmod(fd, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise
