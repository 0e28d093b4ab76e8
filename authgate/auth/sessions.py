"""Server-side session management.

A session id is an opaque random token used only as a lookup key; it
carries no payload. Sessions expire ``ttl_hours`` after creation and are
never renewed.
"""

from __future__ import annotations

import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable

import aiosqlite

from authgate.config import settings
from authgate.errors import DestroyFailed, StoreUnavailable

logger = logging.getLogger(__name__)

SESSION_ID_BYTES = 48
SQLITE_TIMESTAMP = "%Y-%m-%d %H:%M:%S"


def new_session_id() -> str:
    return secrets.token_urlsafe(SESSION_ID_BYTES)


@runtime_checkable
class SessionStore(Protocol):
    """Key-value store mapping session ids to user ids."""

    ttl_hours: int

    async def create(self, user_id: str) -> str: ...

    async def validate(self, session_id: str) -> str | None: ...

    async def destroy(self, session_id: str) -> None: ...

    async def cleanup_expired(self) -> int: ...


class SQLiteSessionStore:
    """Sessions persisted in the ``sessions`` table."""

    def __init__(self, db: aiosqlite.Connection, ttl_hours: int | None = None) -> None:
        self.db = db
        self.ttl_hours = ttl_hours if ttl_hours is not None else settings.session_ttl_hours

    async def create(self, user_id: str) -> str:
        session_id = new_session_id()
        expires_at = (datetime.now(timezone.utc) + timedelta(hours=self.ttl_hours)).strftime(SQLITE_TIMESTAMP)
        try:
            await self.db.execute(
                "INSERT INTO sessions (id, user_id, expires_at) VALUES (?, ?, ?)",
                (session_id, user_id, expires_at),
            )
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise StoreUnavailable(f"Could not create session: {exc}") from exc
        return session_id

    async def validate(self, session_id: str) -> str | None:
        """Return the bound user id, or None if the session is absent or expired."""
        try:
            async with self.db.execute(
                "SELECT user_id FROM sessions WHERE id = ? AND expires_at > datetime('now')",
                (session_id,),
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreUnavailable(f"Could not read session: {exc}") from exc
        return row["user_id"] if row else None

    async def destroy(self, session_id: str) -> None:
        try:
            await self.db.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise DestroyFailed(f"Logout failed: {exc}") from exc

    async def cleanup_expired(self) -> int:
        """Delete expired sessions. Returns count deleted."""
        result = await self.db.execute("DELETE FROM sessions WHERE expires_at <= datetime('now')")
        await self.db.commit()
        return result.rowcount


class MemorySessionStore:
    """In-process dict of session id -> (user id, expiry). Single-process only."""

    def __init__(self, ttl_hours: int | None = None) -> None:
        self.ttl_hours = ttl_hours if ttl_hours is not None else settings.session_ttl_hours
        self._sessions: dict[str, tuple[str, float]] = {}

    async def create(self, user_id: str) -> str:
        session_id = new_session_id()
        self._sessions[session_id] = (user_id, time.time() + self.ttl_hours * 3600)
        return session_id

    async def validate(self, session_id: str) -> str | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        user_id, expires_at = entry
        if time.time() >= expires_at:
            self._sessions.pop(session_id, None)
            return None
        return user_id

    async def destroy(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def cleanup_expired(self) -> int:
        now = time.time()
        expired = [sid for sid, (_, expires_at) in self._sessions.items() if expires_at <= now]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)


def get_session_store(db: aiosqlite.Connection | None = None) -> SessionStore:
    """Factory: returns the session store configured by ``session_backend``."""
    if settings.session_backend == "memory":
        return MemorySessionStore()
    if db is None:
        raise RuntimeError("SQLite session backend requires a database connection")
    return SQLiteSessionStore(db)
