"""Database models."""

from internconnect.models.auth_session import AuthSessionRecord

__all__ = [
    "AuthSessionRecord",
]
