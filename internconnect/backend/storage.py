"""Object storage buckets: upload, download, public URLs, removal."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

if TYPE_CHECKING:
    from internconnect.backend.client import BackendClient

logger = logging.getLogger(__name__)


class StorageBucket:
    """Operations on one bucket, addressed by object path."""

    def __init__(self, client: BackendClient, bucket: str):
        self._client = client
        self.bucket = bucket

    def _object_path(self, path: str) -> str:
        return f"/storage/v1/object/{self.bucket}/{quote(path.lstrip('/'))}"

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
        cache_control: str = "3600",
    ) -> str:
        """Store ``data`` at ``path``; returns the path."""
        await self._client.request(
            "POST",
            self._object_path(path),
            content=data,
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if upsert else "false",
                "cache-control": f"max-age={cache_control}",
            },
        )
        logger.info(f"Uploaded {len(data)} bytes to {self.bucket}/{path}")
        return path

    async def download(self, path: str) -> bytes:
        response = await self._client.request("GET", self._object_path(path))
        return response.content

    def get_public_url(self, path: str) -> str:
        """Build the public URL for ``path``; does not check that it exists."""
        return (
            f"{self._client.url}/storage/v1/object/public/"
            f"{self.bucket}/{quote(path.lstrip('/'))}"
        )

    async def remove(self, paths: list[str]) -> list[dict[str, Any]]:
        response = await self._client.request(
            "DELETE",
            f"/storage/v1/object/{self.bucket}",
            json={"prefixes": paths},
        )
        logger.info(f"Removed {len(paths)} object(s) from {self.bucket}")
        return response.json() if response.content else []

    async def list(self, prefix: str = "", limit: int = 100) -> list[dict[str, Any]]:
        response = await self._client.request(
            "POST",
            f"/storage/v1/object/list/{self.bucket}",
            json={"prefix": prefix, "limit": limit, "offset": 0},
        )
        return response.json()


class StorageClient:
    def __init__(self, client: BackendClient):
        self._client = client

    def from_(self, bucket: str) -> StorageBucket:
        return StorageBucket(self._client, bucket)
