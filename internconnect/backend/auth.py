"""Password authentication against the backend auth service."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from internconnect.backend.persistence import SessionStorage
from internconnect.core.exceptions import BackendError
from internconnect.schemas.auth import AuthUser, Session

if TYPE_CHECKING:
    from internconnect.backend.client import BackendClient

logger = logging.getLogger(__name__)


class AuthChangeEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


AuthCallback = Callable[[AuthChangeEvent, Session | None], Awaitable[None]]


class Subscription:
    """Handle returned by :meth:`AuthClient.on_auth_state_change`."""

    def __init__(self, auth: AuthClient, callback: AuthCallback):
        self._auth = auth
        self.callback = callback

    def unsubscribe(self) -> None:
        self._auth._remove_listener(self)


@dataclass
class SignUpResult:
    """Outcome of a registration: the user, and a session if auto-confirmed."""

    user: AuthUser | None
    session: Session | None

    @property
    def needs_confirmation(self) -> bool:
        # The service answers with an empty identity list when the email
        # still has to be confirmed.
        return self.session is None or (
            self.user is not None and self.user.identities == []
        )


class AuthClient:
    """Session handling: sign-in, sign-up, sign-out and change events."""

    def __init__(self, client: BackendClient, storage: SessionStorage, storage_key: str):
        self._client = client
        self._storage = storage
        self._storage_key = storage_key
        self._session: Session | None = None
        self._listeners: list[Subscription] = []

    @property
    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    @property
    def current_session(self) -> Session | None:
        return self._session

    def _anon_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._client.key}"}

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Exchange email and password for a session."""
        response = await self._client.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers=self._anon_headers(),
        )
        session = Session.model_validate(response.json())
        await self._save_session(session)
        logger.info(f"Signed in user {session.user.id}")
        await self._notify(AuthChangeEvent.SIGNED_IN, session)
        return session

    async def sign_up(
        self, email: str, password: str, data: dict[str, Any] | None = None
    ) -> SignUpResult:
        """Create an identity; ``data`` becomes the user's metadata."""
        response = await self._client.request(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password, "data": data or {}},
            headers=self._anon_headers(),
        )
        payload = response.json()
        if "access_token" in payload:
            session = Session.model_validate(payload)
            await self._save_session(session)
            await self._notify(AuthChangeEvent.SIGNED_IN, session)
            return SignUpResult(user=session.user, session=session)

        user_payload = payload.get("user", payload)
        user = AuthUser.model_validate(user_payload) if user_payload.get("id") else None
        return SignUpResult(user=user, session=None)

    async def get_session(self) -> Session | None:
        """Return the current session, loading and refreshing it if needed.

        Any failure yields ``None``: there is no retry.
        """
        if self._session is None:
            raw = await self._storage.get_item(self._storage_key)
            if raw is None:
                return None
            try:
                self._session = Session.model_validate_json(raw)
            except PydanticValidationError:
                logger.warning("Discarding unreadable persisted session")
                await self._storage.remove_item(self._storage_key)
                return None

        if self._session.is_expired():
            try:
                await self.refresh_session()
            except BackendError as e:
                logger.info(f"Session refresh failed, treating as signed out: {e.message}")
                await self._clear_session()
                return None
        return self._session

    async def refresh_session(self) -> Session:
        if self._session is None:
            raise BackendError("No session to refresh", code="session_missing")
        response = await self._client.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
            headers=self._anon_headers(),
        )
        session = Session.model_validate(response.json())
        await self._save_session(session)
        await self._notify(AuthChangeEvent.TOKEN_REFRESHED, session)
        return session

    async def initialize(self) -> Session | None:
        """Probe the persisted session and announce the result."""
        session = await self.get_session()
        await self._notify(AuthChangeEvent.INITIAL_SESSION, session)
        return session

    async def sign_out(self) -> BackendError | None:
        """Invalidate the session remotely and always clear it locally."""
        error = None
        if self._session is not None:
            try:
                await self._client.request("POST", "/auth/v1/logout")
            except BackendError as e:
                logger.error(f"Logout error: {e.message}")
                error = e
        await self._clear_session()
        await self._notify(AuthChangeEvent.SIGNED_OUT, None)
        return error

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        subscription = Subscription(self, callback)
        self._listeners.append(subscription)
        return subscription

    async def move_storage(self, storage_key: str) -> None:
        """Keep the persisted session under ``storage_key`` from now on."""
        if storage_key == self._storage_key:
            return
        raw = await self._storage.get_item(self._storage_key)
        await self._storage.remove_item(self._storage_key)
        self._storage_key = storage_key
        if raw is not None:
            await self._storage.set_item(storage_key, raw)

    def _remove_listener(self, subscription: Subscription) -> None:
        if subscription in self._listeners:
            self._listeners.remove(subscription)

    async def _save_session(self, session: Session) -> None:
        self._session = session
        await self._storage.set_item(self._storage_key, session.model_dump_json())

    async def _clear_session(self) -> None:
        self._session = None
        await self._storage.remove_item(self._storage_key)

    async def _notify(self, event: AuthChangeEvent, session: Session | None) -> None:
        for subscription in list(self._listeners):
            try:
                await subscription.callback(event, session)
            except Exception:
                logger.exception(f"Auth listener failed handling {event.value}")
