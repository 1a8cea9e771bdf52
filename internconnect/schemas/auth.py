"""Schemas for authentication and backend sessions."""

import time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """Identity issued by the backend auth service."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    identities: list[dict[str, Any]] | None = None


class Session(BaseModel):
    """Backend session: tokens plus the user they belong to."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 3600
    expires_at: int | None = None
    user: AuthUser

    def model_post_init(self, __context: Any) -> None:
        if self.expires_at is None:
            self.expires_at = int(time.time()) + self.expires_in

    def is_expired(self, buffer_seconds: int = 10) -> bool:
        """Check if the access token is expired (with buffer for clock skew)."""
        return time.time() + buffer_seconds >= (self.expires_at or 0)


class LoginRequest(BaseModel):
    """Password login form."""

    email: str
    password: str


class RegisterRequest(BaseModel):
    """Registration form shared by students and companies."""

    email: str
    password: str
    confirm_password: str
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None


class AuthStatus(BaseModel):
    """Current authentication state of a browser session."""

    authenticated: bool
    loading: bool = False
    user_id: str | None = None
    email: str | None = None
    role: Literal["student", "company"] | None = None
    profile_completed: bool | None = None
