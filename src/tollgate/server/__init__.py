"""aiohttp integration for Tollgate."""

from tollgate.server.middleware import (
    authenticator_from_settings,
    basic_auth_middleware,
    create_app,
)

__all__ = [
    "authenticator_from_settings",
    "basic_auth_middleware",
    "create_app",
]
