"""HTTP server exposing the token issuer.

Copyright (c) 2025 InboxAuth. All rights reserved.
"""

from .app import create_app

__all__ = ["create_app"]
