"""Email/password authentication endpoints."""

from __future__ import annotations

import aiosqlite
from fastapi import APIRouter, Depends, Response

from authgate.api.deps import (
    clear_session_cookie,
    get_db,
    get_session_id,
    get_sessions,
    set_session_cookie,
)
from authgate.auth.sessions import SessionStore
from authgate.models.user import Credentials, UserOut
from authgate.services import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", status_code=201)
async def signup(body: Credentials | None = None, db: aiosqlite.Connection = Depends(get_db)):
    body = body or Credentials()
    user = await auth_service.signup(db, body.email, body.password)
    return {"message": "User created successfully", "user": UserOut(**user.model_dump())}


@router.post("/login")
async def login(
    response: Response,
    body: Credentials | None = None,
    db: aiosqlite.Connection = Depends(get_db),
    sessions: SessionStore = Depends(get_sessions),
):
    body = body or Credentials()
    user, session_id = await auth_service.login(db, sessions, body.email, body.password)
    set_session_cookie(response, session_id, sessions.ttl_hours)
    return {"message": "Logged in", "user": UserOut(**user.model_dump())}


@router.post("/logout")
async def logout(
    response: Response,
    session_id: str | None = Depends(get_session_id),
    sessions: SessionStore = Depends(get_sessions),
):
    await auth_service.logout(sessions, session_id)
    clear_session_cookie(response)
    return {"message": "Logged out"}


@router.get("/me")
async def me(
    session_id: str | None = Depends(get_session_id),
    sessions: SessionStore = Depends(get_sessions),
):
    """Report the user bound to the current session."""
    user_id = await auth_service.check_session(sessions, session_id)
    return {"user_id": user_id}
