"""Run the InboxAuth server: ``python -m inboxauth.server``.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

import uvicorn

from ..config import ServerSettings
from ._logging import setup_logging
from .app import create_app


def main() -> None:
    settings = ServerSettings()
    setup_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
