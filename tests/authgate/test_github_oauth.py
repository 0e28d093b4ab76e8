"""Tests for the GitHub OAuth flow.

All GitHub HTTP calls are served by httpx.MockTransport; no network access.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from authgate.auth import credentials
from authgate.auth.github_oauth import fetch_github_profile, pick_email
from authgate.config import settings
from authgate.db.queries import users as user_queries
from authgate.errors import LinkingFailure
from authgate.models.user import GitHubProfile

_RealAsyncClient = httpx.AsyncClient


def _github_handler(token: str | None = "gho_test", user: dict | None = None, emails=None, emails_status=200):
    user = user if user is not None else {"id": 4242, "login": "octo", "email": None}
    emails = emails if emails is not None else [
        {"email": "secondary@x.com", "primary": False, "verified": True},
        {"email": "octo@x.com", "primary": True, "verified": True},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/login/oauth/access_token":
            return httpx.Response(200, json={"access_token": token} if token else {"error": "bad_verification_code"})
        if request.url.path == "/user":
            assert request.headers["Authorization"] == f"Bearer {token}"
            return httpx.Response(200, json=user)
        if request.url.path == "/user/emails":
            return httpx.Response(emails_status, json=emails)
        return httpx.Response(404)

    return handler


@pytest.fixture
def mock_github(monkeypatch):
    def install(**kwargs):
        transport = httpx.MockTransport(_github_handler(**kwargs))
        monkeypatch.setattr(
            "authgate.auth.github_oauth.httpx.AsyncClient",
            lambda *args, **kw: _RealAsyncClient(transport=transport),
        )
    return install


# ---------------------------------------------------------------------------
# pick_email
# ---------------------------------------------------------------------------

class TestPickEmail:
    def test_prefers_primary_verified(self):
        emails = [
            {"email": "a@x.com", "primary": False, "verified": True},
            {"email": "b@x.com", "primary": True, "verified": True},
        ]
        assert pick_email({"email": "public@x.com"}, emails) == "b@x.com"

    def test_falls_back_to_first_listed(self):
        emails = [{"email": "a@x.com", "primary": True, "verified": False}]
        assert pick_email({}, emails) == "a@x.com"

    def test_falls_back_to_public_email(self):
        assert pick_email({"email": "public@x.com"}, []) == "public@x.com"

    def test_none_when_absent(self):
        assert pick_email({"email": None}, []) is None


# ---------------------------------------------------------------------------
# fetch_github_profile
# ---------------------------------------------------------------------------

class TestFetchGithubProfile:
    @pytest.mark.asyncio
    async def test_builds_profile(self, mock_github):
        mock_github()
        profile = await fetch_github_profile("code-123")
        assert profile == GitHubProfile(github_id="4242", login="octo", email="octo@x.com")

    @pytest.mark.asyncio
    async def test_emails_endpoint_forbidden(self, mock_github):
        mock_github(user={"id": 7, "login": "quiet", "email": None}, emails_status=403, emails={"message": "no"})
        profile = await fetch_github_profile("code-123")
        assert profile.github_id == "7"
        assert profile.email is None

    @pytest.mark.asyncio
    async def test_no_access_token(self, mock_github):
        mock_github(token=None)
        with pytest.raises(LinkingFailure):
            await fetch_github_profile("bad-code")

    @pytest.mark.asyncio
    async def test_profile_without_id(self, mock_github):
        mock_github(user={"login": "ghost"})
        with pytest.raises(LinkingFailure):
            await fetch_github_profile("code-123")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

class TestGithubRoutes:
    @pytest.mark.asyncio
    async def test_login_redirects_to_github(self, client):
        resp = await client.get("/api/auth/github")
        assert resp.status_code == 307
        location = urlparse(resp.headers["location"])
        params = parse_qs(location.query)
        assert location.netloc == "github.com"
        assert params["scope"] == ["user:email"]
        assert params["redirect_uri"] == [f"{settings.app_base_url}/api/auth/github/callback"]

    @pytest.mark.asyncio
    async def test_callback_establishes_session(self, client, db, sessions, mock_github):
        mock_github()
        resp = await client.get("/api/auth/github/callback", params={"code": "code-123"})

        assert resp.status_code == 302
        assert resp.headers["location"] == f"{settings.frontend_url}/"
        sid = resp.cookies.get(settings.session_cookie_name)
        user = await user_queries.get_user_by_github_id(db, "4242")
        assert user["email"] == "octo@x.com"
        assert await sessions.validate(sid) == user["id"]

        me = await client.get("/api/auth/me")
        assert me.json() == {"user_id": user["id"]}

    @pytest.mark.asyncio
    async def test_repeat_callback_reuses_user(self, client, db, mock_github):
        mock_github()
        await client.get("/api/auth/github/callback", params={"code": "one"})
        await client.get("/api/auth/github/callback", params={"code": "two"})
        assert await user_queries.count_users(db) == 1

    @pytest.mark.asyncio
    async def test_callback_email_collision_fails(self, client, db, sessions, mock_github):
        await credentials.create_local(db, "octo@x.com", "pw")
        mock_github()
        resp = await client.get("/api/auth/github/callback", params={"code": "code-123"})

        assert resp.status_code == 302
        assert resp.headers["location"] == f"{settings.frontend_url}/login?error=duplicate_email"
        assert settings.session_cookie_name not in resp.cookies
        assert await user_queries.get_user_by_github_id(db, "4242") is None

    @pytest.mark.asyncio
    async def test_callback_linking_failure(self, client):
        with patch(
            "authgate.auth.github_oauth.fetch_github_profile",
            AsyncMock(side_effect=LinkingFailure("GitHub request failed")),
        ):
            resp = await client.get("/api/auth/github/callback", params={"code": "code-123"})
        assert resp.status_code == 302
        assert resp.headers["location"].endswith("/login?error=linking_failure")

    @pytest.mark.asyncio
    async def test_callback_without_code(self, client):
        resp = await client.get("/api/auth/github/callback")
        assert resp.status_code == 302
        assert resp.headers["location"].endswith("/login?error=missing_code")
