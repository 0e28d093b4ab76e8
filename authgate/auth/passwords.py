"""Password hashing with bcrypt."""

from __future__ import annotations

import bcrypt

from authgate.config import settings
from authgate.errors import InvalidFields

# bcrypt only considers the first 72 bytes and recent releases refuse longer input.
MAX_PASSWORD_BYTES = 72


def hash_password(plaintext: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash. Hashing the same input twice gives different strings."""
    try:
        encoded = plaintext.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidFields("Password is not valid UTF-8 text") from exc
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise InvalidFields(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(plaintext: str, hashed: str | None) -> bool:
    """Check a password against a bcrypt hash.

    Returns False instead of raising for an empty or malformed hash, or for
    input bcrypt refuses to process.
    """
    if not plaintext or not hashed:
        return False
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
