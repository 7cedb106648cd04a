"""FastAPI application factory for the InboxAuth server.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from ..config import ServerSettings
from ..issuer import Clock, TokenIssuer
from .errors import register_exception_handlers
from .middleware import add_middlewares
from .routes import health_router, router
from .users import UserDirectory

_log = logging.getLogger("inboxauth.startup")


def create_app(
    settings: ServerSettings | None = None,
    *,
    issuer: TokenIssuer | None = None,
    users: UserDirectory | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Build the app with its issuer and user directory on ``app.state``.

    Args:
        settings: Server settings (read from the environment if None)
        issuer: Token issuer to use instead of one built from settings
        users: User directory to use instead of one built from settings
        clock: Clock for a settings-built issuer

    """
    settings = settings or ServerSettings()
    app = FastAPI(title=settings.app_name)

    app.state.settings = settings
    app.state.issuer = issuer or TokenIssuer(settings, clock=clock)
    app.state.users = users or UserDirectory.from_settings(settings)

    add_middlewares(app, settings)
    register_exception_handlers(app)

    prefix = settings.api_prefix_normalized
    app.include_router(router, prefix=prefix)
    app.include_router(health_router, prefix=prefix)
    _log.info(
        "InboxAuth API ready (prefix=%r, access=%smin, refresh=%sd, rotation=%s)",
        prefix,
        settings.access_token_expire_minutes,
        settings.refresh_token_expire_days,
        settings.rotate_refresh_tokens,
    )
    return app
