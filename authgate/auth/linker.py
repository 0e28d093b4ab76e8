"""Resolve a GitHub profile to a local user, creating one on first login."""

from __future__ import annotations

import logging

import aiosqlite

from authgate.auth.credentials import normalize_email
from authgate.db.queries import users as user_queries
from authgate.errors import DuplicateEmail, DuplicateGithubId, LinkingFailure, StoreUnavailable
from authgate.models.user import GitHubProfile, User

logger = logging.getLogger(__name__)


async def resolve_or_create(db: aiosqlite.Connection, profile: GitHubProfile) -> User:
    """Return the user linked to ``profile.github_id``, creating it if absent.

    An existing user is returned as stored: the profile email is not synced
    on repeat logins. A profile whose email already belongs to another user
    raises DuplicateEmail; accounts are never merged.
    """
    if not profile.github_id:
        raise LinkingFailure("GitHub profile has no id")

    try:
        row = await user_queries.get_user_by_github_id(db, profile.github_id)
        if row:
            return User(**row)

        email = normalize_email(profile.email) or None
        try:
            row = await user_queries.insert_user(db, email=email, github_id=profile.github_id)
        except DuplicateGithubId:
            # Another callback for the same identity inserted first.
            row = await user_queries.get_user_by_github_id(db, profile.github_id)
            if row is None:
                raise LinkingFailure("GitHub account vanished while linking")
            return User(**row)
    except DuplicateEmail:
        logger.warning("GitHub account %s collides with an existing email", profile.github_id)
        raise
    except StoreUnavailable as exc:
        raise LinkingFailure(f"Could not link GitHub account: {exc.message}") from exc
    except aiosqlite.Error as exc:
        raise LinkingFailure(f"Could not link GitHub account: {exc}") from exc

    logger.info("Created user %s for GitHub account %s", row["id"], profile.github_id)
    return User(**row)
