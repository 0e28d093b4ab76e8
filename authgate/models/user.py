from __future__ import annotations

from pydantic import BaseModel, Field


class User(BaseModel):
    id: str
    email: str | None = None
    password_hash: str | None = Field(default=None, repr=False, exclude=True)
    github_id: str | None = None
    role: str = "user"
    created_at: str | None = None
    updated_at: str | None = None


class GitHubProfile(BaseModel):
    """The subset of a GitHub user profile needed to link an account."""

    github_id: str
    login: str | None = None
    email: str | None = None


class Credentials(BaseModel):
    """Signup/login request body. Presence is checked by the service layer."""

    email: str | None = None
    password: str | None = None


class UserOut(BaseModel):
    id: str
    email: str | None = None
    github_id: str | None = None
    role: str = "user"
    created_at: str | None = None
