"""GitHub OAuth flow for federated login."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import aiosqlite
import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from authgate.api.deps import get_db, get_sessions, set_session_cookie
from authgate.auth.sessions import SessionStore
from authgate.config import settings
from authgate.errors import AuthError, LinkingFailure
from authgate.models.user import GitHubProfile
from authgate.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
GITHUB_EMAILS_URL = "https://api.github.com/user/emails"
GITHUB_SCOPE = "user:email"


def callback_url() -> str:
    return f"{settings.app_base_url}/api/auth/github/callback"


def pick_email(github_user: dict, emails: list[dict]) -> str | None:
    """Primary verified address first, then the first listed, then the public one."""
    for entry in emails:
        if entry.get("primary") and entry.get("verified") and entry.get("email"):
            return entry["email"]
    for entry in emails:
        if entry.get("email"):
            return entry["email"]
    return github_user.get("email")


async def fetch_github_profile(code: str) -> GitHubProfile:
    """Exchange an authorization code for the caller's GitHub profile."""
    try:
        async with httpx.AsyncClient() as client:
            token_resp = await client.post(
                GITHUB_TOKEN_URL,
                json={
                    "client_id": settings.github_client_id,
                    "client_secret": settings.github_client_secret,
                    "code": code,
                    "redirect_uri": callback_url(),
                },
                headers={"Accept": "application/json"},
            )
            access_token = token_resp.json().get("access_token")
            if not access_token:
                raise LinkingFailure("GitHub did not issue an access token")

            headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
            user_resp = await client.get(GITHUB_USER_URL, headers=headers)
            user_resp.raise_for_status()
            github_user = user_resp.json()

            emails_resp = await client.get(GITHUB_EMAILS_URL, headers=headers)
            emails = emails_resp.json() if emails_resp.status_code == 200 else []
    except (httpx.HTTPError, ValueError) as exc:
        raise LinkingFailure(f"GitHub request failed: {exc}") from exc

    if "id" not in github_user:
        raise LinkingFailure("GitHub profile has no id")

    return GitHubProfile(
        github_id=str(github_user["id"]),
        login=github_user.get("login"),
        email=pick_email(github_user, emails if isinstance(emails, list) else []),
    )


@router.get("/github")
async def github_login():
    """Redirect to GitHub OAuth authorization page."""
    params = {
        "client_id": settings.github_client_id,
        "redirect_uri": callback_url(),
        "scope": GITHUB_SCOPE,
    }
    return RedirectResponse(f"{GITHUB_AUTHORIZE_URL}?{urlencode(params)}")


@router.get("/github/callback")
async def github_callback(
    code: str | None = None,
    db: aiosqlite.Connection = Depends(get_db),
    sessions: SessionStore = Depends(get_sessions),
):
    """Handle GitHub OAuth callback: link the account and open a session."""
    failure_url = f"{settings.frontend_url}/login"
    if not code:
        return RedirectResponse(f"{failure_url}?error=missing_code", status_code=302)

    try:
        profile = await fetch_github_profile(code)
        _, session_id = await auth_service.oauth_callback(db, sessions, profile)
    except AuthError as exc:
        logger.warning("GitHub login failed: %s", exc.code)
        return RedirectResponse(f"{failure_url}?error={exc.code.lower()}", status_code=302)

    redirect = RedirectResponse(f"{settings.frontend_url}/", status_code=302)
    set_session_cookie(redirect, session_id, sessions.ttl_hours)
    return redirect
