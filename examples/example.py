"""Example usage of the InboxAuth client against a running server.

Start the server first with ``inboxauth-server`` (listens on port 5000).
"""
# Copyright (c) 2025 InboxAuth. All rights reserved.

import asyncio
import logging
from pathlib import Path

from inboxauth import FileTokenStorage, InboxAuthClient
from inboxauth.exceptions import InboxAuthError, SessionEndedError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def on_session_end(error: Exception) -> None:
    logger.warning("Session ended (%s); please log in again", error)


async def main() -> None:
    """Execute main example function."""
    storage = FileTokenStorage(Path.home() / ".inboxauth" / "session.json")

    async with InboxAuthClient(
        "http://127.0.0.1:5000/api", storage=storage, on_session_end=on_session_end
    ) as client:
        try:
            # Example 1: Login (skipped when a stored session exists)
            logger.info("=== Login Example ===")
            if storage.get_refresh_token() is None:
                login_response = await client.auth.login("demo@example.com", "demo123")
                logger.info(
                    "Login successful! Token expires in %s seconds",
                    login_response["expires_in"],
                )
            else:
                logger.info("Reusing stored session")

            # Example 2: Concurrent calls share a single refresh
            logger.info("=== Concurrent Requests Example ===")
            profiles = await asyncio.gather(*(client.auth.me() for _ in range(5)))
            logger.info("Welcome, %s!", profiles[0]["name"])

            # Example 3: Health check
            logger.info("=== Health Check Example ===")
            health = await client.health_check()
            logger.info("Service status: %s", health["status"])

        except SessionEndedError as e:
            logger.exception("Session could not be renewed: %s", e.code)
        except InboxAuthError as e:
            logger.exception("API error: %s (%s)", e.message, e.code)


if __name__ == "__main__":
    asyncio.run(main())
