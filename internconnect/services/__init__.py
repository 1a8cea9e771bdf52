"""Per-session state stores."""

from internconnect.services.application_store import ApplicationStore
from internconnect.services.auth_store import AuthStore, RegistrationResult
from internconnect.services.internship_store import InternshipStore
from internconnect.services.profile_store import ProfileStore
from internconnect.services.user_session import SessionRegistry, UserSession

__all__ = [
    "ApplicationStore",
    "AuthStore",
    "InternshipStore",
    "ProfileStore",
    "RegistrationResult",
    "SessionRegistry",
    "UserSession",
]
