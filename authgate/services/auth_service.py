"""Boundary operations: signup, login, logout, OAuth callback, session check.

Each operation either returns its success value or raises an AuthError
subclass; the HTTP layer maps both to responses.
"""

from __future__ import annotations

import logging

import aiosqlite

from authgate.auth import credentials, linker
from authgate.auth.guard import Allow, authorize
from authgate.auth.sessions import SessionStore
from authgate.errors import MissingFields, NoSuchUser, Unauthorized, WrongPassword
from authgate.models.user import GitHubProfile, User

logger = logging.getLogger(__name__)


async def signup(db: aiosqlite.Connection, email: str | None, password: str | None) -> User:
    if not credentials.normalize_email(email) or not password:
        raise MissingFields()
    user = await credentials.create_local(db, email, password)
    logger.info("Signup succeeded for user %s", user.id)
    return user


async def login(
    db: aiosqlite.Connection, sessions: SessionStore, email: str | None, password: str | None
) -> tuple[User, str]:
    """Verify credentials and open a session. Returns (user, session_id)."""
    if not credentials.normalize_email(email) or not password:
        raise MissingFields()

    user = await credentials.find_by_email(db, email)
    if user is None:
        logger.info("Login failed: no such user")
        raise NoSuchUser()
    if not credentials.verify_password(user, password):
        logger.info("Login failed: wrong password for user %s", user.id)
        raise WrongPassword()

    session_id = await sessions.create(user.id)
    logger.info("Login succeeded for user %s", user.id)
    return user, session_id


async def logout(sessions: SessionStore, session_id: str | None) -> None:
    """Destroy the session. Logging out without a session is a no-op."""
    if session_id:
        await sessions.destroy(session_id)


async def oauth_callback(
    db: aiosqlite.Connection, sessions: SessionStore, profile: GitHubProfile
) -> tuple[User, str]:
    """Link the GitHub profile to a user and open a session."""
    user = await linker.resolve_or_create(db, profile)
    session_id = await sessions.create(user.id)
    logger.info("GitHub login succeeded for user %s", user.id)
    return user, session_id


async def check_session(sessions: SessionStore, session_id: str | None) -> str:
    """Return the user id bound to a live session, else raise Unauthorized."""
    decision = await authorize(sessions, session_id)
    if isinstance(decision, Allow):
        return decision.user_id
    raise Unauthorized()
