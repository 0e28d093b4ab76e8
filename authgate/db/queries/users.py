from __future__ import annotations

import uuid

import aiosqlite

from authgate.errors import DuplicateEmail, DuplicateGithubId, StoreUnavailable


def _translate_integrity_error(exc: aiosqlite.IntegrityError) -> Exception | None:
    """Map a UNIQUE violation on users to the matching duplicate error."""
    message = str(exc)
    if "users.email" in message:
        return DuplicateEmail()
    if "users.github_id" in message:
        return DuplicateGithubId()
    return None


async def get_user(db: aiosqlite.Connection, user_id: str) -> dict | None:
    async with db.execute("SELECT * FROM users WHERE id = ?", (user_id,)) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def get_user_by_email(db: aiosqlite.Connection, email: str) -> dict | None:
    async with db.execute("SELECT * FROM users WHERE email = ?", (email,)) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def get_user_by_github_id(db: aiosqlite.Connection, github_id: str) -> dict | None:
    async with db.execute(
        "SELECT * FROM users WHERE github_id = ?", (github_id,)
    ) as cursor:
        row = await cursor.fetchone()
        return dict(row) if row else None


async def insert_user(
    db: aiosqlite.Connection,
    email: str | None,
    password_hash: str | None = None,
    github_id: str | None = None,
    role: str = "user",
) -> dict:
    """Insert a user, relying on the UNIQUE constraints for atomicity.

    Raises DuplicateEmail / DuplicateGithubId when the row would violate
    uniqueness, including when a concurrent insert won the race.
    """
    user_id = str(uuid.uuid4())
    try:
        await db.execute(
            """INSERT INTO users (id, email, password_hash, github_id, role)
               VALUES (?, ?, ?, ?, ?)""",
            (user_id, email, password_hash, github_id, role),
        )
        await db.commit()
    except aiosqlite.IntegrityError as exc:
        # SQLite undoes only the failed statement; the connection is shared, so no rollback.
        translated = _translate_integrity_error(exc)
        if translated is None:
            raise
        raise translated from exc
    row = await get_user(db, user_id)
    if row is None:
        raise StoreUnavailable("Inserted user could not be read back")
    return row


async def update_password_hash(db: aiosqlite.Connection, user_id: str, password_hash: str) -> bool:
    result = await db.execute(
        "UPDATE users SET password_hash = ?, updated_at = datetime('now') WHERE id = ?",
        (password_hash, user_id),
    )
    await db.commit()
    return result.rowcount > 0


async def count_users(db: aiosqlite.Connection) -> int:
    async with db.execute("SELECT COUNT(*) FROM users") as cursor:
        row = await cursor.fetchone()
        return row[0] if row else 0
