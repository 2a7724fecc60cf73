"""Session-cookie authentication middleware.

Resolves the requesting user from the signed session cookie
(``settings.session_cookie_name``) or, for API clients, from an
``Authorization: Bearer <session token>`` header, and stores it on
``request.state.user_id``. Workspace membership is checked later by the
services; this layer only establishes *who* is calling.

Exempt paths: /health, /docs, /openapi.json, /redoc, /
"""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from workboard.config import settings
from workboard.errors import Unauthorized, error_response
from workboard.security.session_token import verify_session_token

logger = logging.getLogger(__name__)

# Paths that don't require a session
_EXEMPT_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc", "/"})


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """Rejects requests without a valid session with ``401 Unauthorized``."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in _EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        token = self._extract_token(request)
        if token is None:
            return error_response("Unauthorized", "Missing session. Please sign in.", 401)

        user_id = verify_session_token(token=token, secret=settings.session_secret)
        if user_id is None:
            logger.warning(
                "Invalid session token from %s on %s",
                request.client.host if request.client else "unknown",
                request.url.path,
            )
            return error_response("Unauthorized", "Session is invalid or expired.", 401)

        request.state.user_id = user_id
        return await call_next(request)

    @staticmethod
    def _extract_token(request: Request) -> str | None:
        """Session cookie first, then Bearer header."""
        cookie = request.cookies.get(settings.session_cookie_name)
        if cookie:
            return cookie

        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            return auth_header[7:]
        return None


def current_user_id(request: Request) -> str:
    """FastAPI dependency returning the authenticated user id."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise Unauthorized("Missing session. Please sign in.")
    return user_id
