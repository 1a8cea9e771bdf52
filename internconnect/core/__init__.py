"""Core application components."""

from internconnect.core.config import settings
from internconnect.core.exceptions import (
    AuthorizationError,
    BackendError,
    InternConnectError,
)
from internconnect.core.storage import Base, SqlSessionStorage, async_session

__all__ = [
    "AuthorizationError",
    "BackendError",
    "Base",
    "InternConnectError",
    "SqlSessionStorage",
    "async_session",
    "settings",
]
