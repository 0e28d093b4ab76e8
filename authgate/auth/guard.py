"""Access guard: allow or deny a request based on its session id."""

from __future__ import annotations

from dataclasses import dataclass

from authgate.auth.sessions import SessionStore


@dataclass(frozen=True)
class Allow:
    user_id: str


@dataclass(frozen=True)
class Deny:
    reason: str = "Unauthorized"


async def authorize(sessions: SessionStore, session_id: str | None) -> Allow | Deny:
    if not session_id or not session_id.strip():
        return Deny("No session")
    user_id = await sessions.validate(session_id)
    if user_id is None:
        return Deny("Invalid or expired session")
    return Allow(user_id)
