"""Per-browser session: one backend client and its four stores."""

import asyncio
import logging
import secrets
import time
from collections.abc import Callable

import httpx

from internconnect.backend.client import BackendClient
from internconnect.backend.persistence import SessionStorage
from internconnect.core.config import settings
from internconnect.services.application_store import ApplicationStore
from internconnect.services.auth_store import AuthStore
from internconnect.services.internship_store import InternshipStore
from internconnect.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return secrets.token_urlsafe(32)


class UserSession:
    """State a single browser would hold in memory.

    Listeners are chained auth -> profile -> applications, so signing in loads
    the profile, which in turn loads the role-scoped application list.
    """

    def __init__(
        self,
        session_id: str,
        client: BackendClient,
        documents_bucket: str = "documents",
        resumes_bucket: str = "resumes",
    ):
        self.id = session_id
        self.client = client
        self.auth = AuthStore(client)
        self.profiles = ProfileStore(client, self.auth, documents_bucket)
        self.internships = InternshipStore(client, self.auth, self.profiles)
        self.applications = ApplicationStore(client, self.auth, self.profiles, resumes_bucket)
        self.last_seen = time.monotonic()

    @classmethod
    def create(
        cls,
        session_id: str,
        *,
        session_storage: SessionStorage | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "UserSession":
        """Build a session against the configured backend."""
        client = BackendClient(
            settings.backend_base_url,
            settings.backend_anon_key,
            session_storage=session_storage,
            storage_key=f"auth:{session_id}",
            transport=transport,
            timeout=settings.backend_timeout_seconds,
        )
        return cls(session_id, client, settings.documents_bucket, settings.resumes_bucket)

    async def start(self) -> None:
        await self.auth.initialize()
        await self.internships.fetch_internships()

    async def refresh(self) -> None:
        """Reload the catalog and the caller's applications from the backend."""
        await self.internships.fetch_internships()
        await self.applications.fetch_applications()

    async def rekey(self, session_id: str) -> None:
        """Switch to a new id, carrying the persisted sign-in along."""
        self.id = session_id
        await self.client.auth.move_storage(f"auth:{session_id}")

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def idle_seconds(self) -> float:
        return time.monotonic() - self.last_seen

    async def close(self) -> None:
        self.applications.close()
        self.profiles.close()
        self.auth.close()
        await self.client.close()


class SessionRegistry:
    """Maps session cookies to live :class:`UserSession` objects."""

    def __init__(
        self,
        factory: Callable[[str], UserSession],
        idle_minutes: int = 120,
    ):
        self._factory = factory
        self._idle_seconds = idle_minutes * 60
        self._sessions: dict[str, UserSession] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def get_or_create(self, session_id: str | None) -> UserSession:
        """Return the live session for ``session_id``, starting one if needed.

        An unknown id is kept only when a signed-in session was persisted
        under it; otherwise the new session gets a freshly generated id.
        """
        await self.evict_idle()
        async with self._lock:
            if session_id and session_id in self._sessions:
                session = self._sessions[session_id]
                session.touch()
                return session

            session = self._factory(session_id or _new_id())
            self._sessions[session.id] = session
        await session.start()
        if session_id and not session.auth.is_authenticated:
            await self.rotate(session)
        logger.debug(f"Started session {session.id[:8]}")
        return session

    async def rotate(self, session: UserSession) -> str:
        """Re-register ``session`` under a fresh id; the old id stops resolving."""
        async with self._lock:
            old_id = session.id
            if self._sessions.get(old_id) is session:
                del self._sessions[old_id]
            await session.rekey(_new_id())
            self._sessions[session.id] = session
        logger.debug(f"Rotated session {old_id[:8]} -> {session.id[:8]}")
        return session.id

    async def discard(self, session_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            await session.close()
            logger.debug(f"Closed session {session_id[:8]}")

    async def evict_idle(self) -> int:
        async with self._lock:
            expired = [
                sid for sid, session in self._sessions.items()
                if session.idle_seconds() > self._idle_seconds
            ]
            sessions = [self._sessions.pop(sid) for sid in expired]
        for session in sessions:
            await session.close()
        if sessions:
            logger.info(f"Evicted {len(sessions)} idle session(s)")
        return len(sessions)

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()
