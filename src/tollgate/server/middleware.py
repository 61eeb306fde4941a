"""aiohttp integration for the basic auth check."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog
from aiohttp import web

from tollgate.core.config import AuthSettings
from tollgate.security.basicauth import BasicAuthenticator, basic_auth

logger = structlog.get_logger()


def basic_auth_middleware(
    authenticator: BasicAuthenticator,
    exclude: Iterable[str] = (),
):
    """Wrap an authenticator as aiohttp middleware.

    Args:
        authenticator: Configured check from ``basic_auth``.
        exclude: Exact request paths served without authentication.
    """
    excluded = frozenset(exclude)

    @web.middleware
    async def middleware(request: web.Request, handler) -> web.StreamResponse:
        if request.path in excluded:
            return await handler(request)
        return await authenticator.check(request, lambda: handler(request))

    return middleware


def authenticator_from_settings(settings: AuthSettings) -> BasicAuthenticator:
    return basic_auth(settings.to_options(), *settings.credentials())


async def _handle_health_check(request: web.Request) -> web.Response:
    return web.json_response({"status": "healthy"})


def create_app(
    settings: AuthSettings,
    static_dir: str | Path | None = None,
) -> web.Application:
    """Create an application protected by basic auth.

    Args:
        settings: Credentials, realm and excluded paths.
        static_dir: Optional directory to serve at ``/``.

    Returns:
        Application with the auth middleware and a ``/health`` route.
    """
    authenticator = authenticator_from_settings(settings)
    app = web.Application(
        middlewares=[basic_auth_middleware(authenticator, settings.exclude_paths)]
    )
    app.router.add_get("/health", _handle_health_check)
    if static_dir is not None:
        app.router.add_static("/", Path(static_dir), show_index=True)
        logger.info("Serving directory", path=str(static_dir))
    return app
