"""Authentication middleware for FastAPI."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from authgate.auth.guard import Allow, authorize
from authgate.config import settings
from authgate.errors import AuthError, Unauthorized
from authgate.models.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

# Requests under these prefixes never reach the route without a live session
PROTECTED_PREFIXES = ("/api/protected",)


def error_response(exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )


class AuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, protected_prefixes: tuple[str, ...] = PROTECTED_PREFIXES):
        super().__init__(app)
        self.protected_prefixes = protected_prefixes

    async def dispatch(self, request: Request, call_next):
        request.state.user_id = None
        if not request.url.path.startswith(self.protected_prefixes):
            return await call_next(request)

        sessions = getattr(request.app.state, "sessions", None)
        if sessions is None:
            return error_response(Unauthorized())

        try:
            decision = await authorize(sessions, request.cookies.get(settings.session_cookie_name))
        except AuthError as exc:
            logger.warning("Session lookup failed: %s", exc.code)
            return error_response(exc)

        if not isinstance(decision, Allow):
            return error_response(Unauthorized())

        request.state.user_id = decision.user_id
        return await call_next(request)
