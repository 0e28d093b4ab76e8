"""Tests for linking GitHub profiles to local users."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import aiosqlite
import pytest

from authgate.auth import credentials
from authgate.auth.linker import resolve_or_create
from authgate.db.queries import users as user_queries
from authgate.errors import DuplicateEmail, DuplicateGithubId, LinkingFailure
from authgate.models.user import GitHubProfile


@pytest.mark.asyncio
async def test_first_login_creates_user(db):
    user = await resolve_or_create(db, GitHubProfile(github_id="gh1", email="b@x.com"))
    assert user.github_id == "gh1"
    assert user.email == "b@x.com"
    assert user.role == "user"
    assert user.password_hash is None


@pytest.mark.asyncio
async def test_repeat_login_is_idempotent(db):
    profile = GitHubProfile(github_id="gh1", email="b@x.com")
    first = await resolve_or_create(db, profile)
    second = await resolve_or_create(db, profile)
    assert first.id == second.id
    assert await user_queries.count_users(db) == 1


@pytest.mark.asyncio
async def test_repeat_login_does_not_resync_email(db):
    first = await resolve_or_create(db, GitHubProfile(github_id="gh1", email="old@x.com"))
    second = await resolve_or_create(db, GitHubProfile(github_id="gh1", email="new@x.com"))
    assert second.id == first.id
    assert second.email == "old@x.com"


@pytest.mark.asyncio
async def test_profile_without_email(db):
    first = await resolve_or_create(db, GitHubProfile(github_id="gh1"))
    second = await resolve_or_create(db, GitHubProfile(github_id="gh2", email=None))
    assert first.email is None
    assert second.email is None
    assert first.id != second.id


@pytest.mark.asyncio
async def test_email_collision_with_local_user_fails(db):
    local = await credentials.create_local(db, "b@x.com", "pw")
    with pytest.raises(DuplicateEmail):
        await resolve_or_create(db, GitHubProfile(github_id="gh1", email="B@x.com"))

    # The local account is neither merged nor modified
    found = await credentials.find_by_email(db, "b@x.com")
    assert found.id == local.id
    assert found.github_id is None
    assert await user_queries.count_users(db) == 1


@pytest.mark.asyncio
async def test_lost_race_returns_winner(db):
    winner = await user_queries.insert_user(db, email="b@x.com", github_id="gh1")
    original_lookup = user_queries.get_user_by_github_id
    lookup = AsyncMock(side_effect=[None, await original_lookup(db, "gh1")])

    with patch.object(user_queries, "get_user_by_github_id", lookup):
        user = await resolve_or_create(db, GitHubProfile(github_id="gh1", email="c@x.com"))

    assert user.id == winner["id"]
    assert await user_queries.count_users(db) == 1


@pytest.mark.asyncio
async def test_store_failure_is_linking_failure():
    db = MagicMock()
    db.execute = MagicMock(side_effect=aiosqlite.OperationalError("disk I/O error"))

    with pytest.raises(LinkingFailure):
        await resolve_or_create(db, GitHubProfile(github_id="gh1"))


@pytest.mark.asyncio
async def test_duplicate_github_id_at_query_level(db):
    await user_queries.insert_user(db, email=None, github_id="gh1")
    with pytest.raises(DuplicateGithubId):
        await user_queries.insert_user(db, email=None, github_id="gh1")
