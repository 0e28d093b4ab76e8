"""FastAPI dependencies resolving the handles built at startup."""

from __future__ import annotations

import aiosqlite
from fastapi import Request, Response

from authgate.auth.sessions import SessionStore
from authgate.config import settings
from authgate.errors import Unauthorized


def get_db(request: Request) -> aiosqlite.Connection:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database not initialized")
    return db


def get_sessions(request: Request) -> SessionStore:
    sessions = getattr(request.app.state, "sessions", None)
    if sessions is None:
        raise RuntimeError("Session store not initialized")
    return sessions


def get_session_id(request: Request) -> str | None:
    return request.cookies.get(settings.session_cookie_name)


def require_user_id(request: Request) -> str:
    """User id authorized by AuthMiddleware for this request, else Unauthorized."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise Unauthorized()
    return user_id


def set_session_cookie(response: Response, session_id: str, ttl_hours: int) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        httponly=True,
        samesite="lax",
        max_age=ttl_hours * 3600,
        secure=settings.secure_cookies,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name)
