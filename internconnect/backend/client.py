"""Thin async client for the hosted backend (auth, tables, object storage)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from internconnect.backend.auth import AuthClient
from internconnect.backend.persistence import MemorySessionStorage, SessionStorage
from internconnect.backend.query import QueryBuilder
from internconnect.backend.storage import StorageClient
from internconnect.core.exceptions import BackendError

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "internconnect-auth-token"


def backend_error_from_response(response: httpx.Response) -> BackendError:
    """Build a BackendError from any of the backend's error payload shapes."""
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    message = (
        payload.get("message")
        or payload.get("msg")
        or payload.get("error_description")
        or payload.get("error")
        or response.text[:500]
        or response.reason_phrase
    )
    code = payload.get("code") or payload.get("error_code")
    return BackendError(
        str(message),
        code=str(code) if code is not None else None,
        details=payload.get("details"),
        hint=payload.get("hint"),
        status_code=response.status_code,
    )


class BackendClient:
    """Backend-as-a-service client bound to one browser session.

    Requests carry the signed-in user's access token when there is one and the
    anonymous key otherwise, so row-level security on the service sees the
    right identity.
    """

    def __init__(
        self,
        url: str,
        key: str,
        *,
        session_storage: SessionStorage | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        self.url = url.rstrip("/")
        self.key = key
        self.http = httpx.AsyncClient(
            base_url=self.url,
            headers={"apikey": key},
            timeout=httpx.Timeout(timeout) if timeout else httpx.Timeout(5.0),
            transport=transport,
        )
        self.auth = AuthClient(
            self, session_storage or MemorySessionStorage(), storage_key
        )
        self.storage = StorageClient(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.http.aclose()

    def table(self, name: str) -> QueryBuilder:
        """Start a query against a table."""
        return QueryBuilder(self, name)

    def default_headers(self) -> dict[str, str]:
        token = self.auth.access_token or self.key
        return {"Authorization": f"Bearer {token}"}

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request; non-2xx answers and transport failures raise BackendError."""
        merged = self.default_headers()
        merged.update(headers or {})
        try:
            response = await self.http.request(
                method,
                path,
                params=params,
                json=json,
                content=content,
                headers=merged,
            )
        except httpx.HTTPError as e:
            logger.error(f"Backend request failed: {method} {path}: {e!s}")
            raise BackendError(f"Network error: {e!s}", code="network_error") from e

        if response.is_error:
            error = backend_error_from_response(response)
            logger.debug(
                f"Backend error {response.status_code} for {method} {path}: {error.message}"
            )
            raise error
        return response
