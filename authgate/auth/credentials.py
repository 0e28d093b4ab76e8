"""Local credential store: email/password users.

All writes go through the UNIQUE-constrained ``users`` table, so a
create either succeeds or fails with DuplicateEmail without a separate
existence check.
"""

from __future__ import annotations

import logging

import aiosqlite

from authgate.auth import passwords
from authgate.db.queries import users as user_queries
from authgate.errors import InvalidFields, MissingFields, NoSuchUser, StoreUnavailable
from authgate.models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    try:
        email.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidFields("Email is not valid UTF-8 text") from exc
    return email


async def create_local(db: aiosqlite.Connection, email: str | None, password: str | None) -> User:
    """Create an email/password user. Only the bcrypt hash is stored."""
    email = normalize_email(email)
    if not email or not password:
        raise MissingFields()

    password_hash = passwords.hash_password(password)
    try:
        row = await user_queries.insert_user(db, email=email, password_hash=password_hash)
    except aiosqlite.Error as exc:
        raise StoreUnavailable(f"Could not create user: {exc}") from exc

    logger.info("Created local user %s", row["id"])
    return User(**row)


async def find_by_email(db: aiosqlite.Connection, email: str | None) -> User | None:
    email = normalize_email(email)
    if not email:
        return None
    try:
        row = await user_queries.get_user_by_email(db, email)
    except aiosqlite.Error as exc:
        raise StoreUnavailable(f"Could not look up user: {exc}") from exc
    return User(**row) if row else None


async def find_by_id(db: aiosqlite.Connection, user_id: str) -> User | None:
    try:
        row = await user_queries.get_user(db, user_id)
    except aiosqlite.Error as exc:
        raise StoreUnavailable(f"Could not look up user: {exc}") from exc
    return User(**row) if row else None


def verify_password(user: User, password: str | None) -> bool:
    """Fails closed: a user without a password hash never verifies."""
    if not user.password_hash or not password:
        return False
    return passwords.verify_password(password, user.password_hash)


async def change_password(db: aiosqlite.Connection, user_id: str, password: str | None) -> User:
    """Assign a new password. This and create_local are the only hash writers."""
    if not password:
        raise MissingFields("Password missing")

    password_hash = passwords.hash_password(password)
    try:
        updated = await user_queries.update_password_hash(db, user_id, password_hash)
        row = await user_queries.get_user(db, user_id) if updated else None
    except aiosqlite.Error as exc:
        raise StoreUnavailable(f"Could not update password: {exc}") from exc

    if row is None:
        raise NoSuchUser()
    logger.info("Password changed for user %s", user_id)
    return User(**row)
