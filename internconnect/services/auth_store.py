"""Authentication state of one browser session."""

import logging
from dataclasses import dataclass
from typing import Literal

from internconnect.backend.auth import AuthChangeEvent
from internconnect.backend.client import BackendClient
from internconnect.core.exceptions import BackendError, InternConnectError, ValidationError
from internconnect.schemas.auth import AuthUser, Session
from internconnect.services.store import Store
from internconnect.utils.validators import validate_registration

logger = logging.getLogger(__name__)

# Auth service messages rewritten for the registration form.
_SIGN_UP_MESSAGES = {
    "User already registered": "Email already registered",
    "Password should be at least 6 characters": "Password must be at least 6 characters",
}


@dataclass
class RegistrationResult:
    """Outcome of a sign-up attempt."""

    error: InternConnectError | None = None
    needs_confirmation: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class AuthStore(Store):
    """Tracks the signed-in identity and forwards auth events to listeners."""

    def __init__(self, client: BackendClient):
        super().__init__()
        self._client = client
        self.session: Session | None = None
        self.user: AuthUser | None = None
        self.is_loading = True
        self._subscription = client.auth.on_auth_state_change(self._on_auth_change)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def initialize(self) -> None:
        """Probe the persisted session once; any failure means signed out."""
        self.is_loading = True
        try:
            await self._client.auth.initialize()
        except Exception:
            logger.exception("Initial session check failed")
            await self._on_auth_change(AuthChangeEvent.INITIAL_SESSION, None)
        finally:
            self.is_loading = False

    async def login(self, email: str, password: str) -> BackendError | None:
        try:
            await self._client.auth.sign_in_with_password(email.strip(), password)
        except BackendError as e:
            logger.error(f"Login error: {e.message}")
            self.error = e
            return e
        self.error = None
        return None

    async def logout(self) -> BackendError | None:
        """Sign out; the local session is cleared even if the service call fails."""
        error = await self._client.auth.sign_out()
        self.error = error
        return error

    async def register(
        self,
        email: str,
        password: str,
        confirm_password: str,
        role: Literal["student", "company"],
        display_name: str,
    ) -> RegistrationResult:
        validation = validate_registration(email, password, confirm_password)
        if not validation.is_valid:
            return RegistrationResult(error=ValidationError(validation.error))

        if not display_name.strip():
            field = "Full name" if role == "student" else "Company name"
            return RegistrationResult(error=ValidationError(f"{field} is required"))

        metadata = {"role": role}
        if role == "student":
            metadata["full_name"] = display_name.strip()
        else:
            metadata["company_name"] = display_name.strip()

        try:
            result = await self._client.auth.sign_up(email.strip(), password, metadata)
        except BackendError as e:
            message = _SIGN_UP_MESSAGES.get(e.message, e.message)
            logger.error(f"Registration failed for {role}: {e.message}")
            return RegistrationResult(
                error=BackendError(message, code=e.code, status_code=e.status_code)
            )

        logger.info(f"Registered new {role} account")
        return RegistrationResult(needs_confirmation=result.needs_confirmation)

    def close(self) -> None:
        self._subscription.unsubscribe()

    async def _on_auth_change(self, event: AuthChangeEvent, session: Session | None) -> None:
        logger.debug(f"Auth event {event.value}")
        self.session = session
        self.user = session.user if session else None
        await self._notify()
