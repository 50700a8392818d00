import logging
from typing import Any

import httpx

from shared_lib.baseclient import Client

from baasclient.urls import StorageApiUrls

logger = logging.getLogger(__name__)


class StorageClient(Client):
    """
    Client for the object storage service.

    The bearer token is fixed at construction. When the session changes,
    build a new instance instead of modifying this one.

    Example:
        >>> storage = StorageClient(url + "/storage/v1", token, headers)
        >>> await storage.upload("avatars", "me.png", png_bytes, "image/png")
        >>> data = await storage.download("avatars", "me.png")
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        request_headers = dict(headers or {})
        request_headers["Authorization"] = f"Bearer {token}"
        super().__init__(
            base_url=base_url,
            headers=request_headers,
            http_client=http_client,
            **kwargs,
        )
        self.token = token

    async def list_buckets(self) -> list[dict[str, Any]]:
        return await self._get(StorageApiUrls.BUCKET)

    async def get_bucket(self, bucket_id: str) -> dict[str, Any]:
        return await self._get(f"{StorageApiUrls.BUCKET}/{bucket_id}")

    async def upload(
        self,
        bucket_id: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> dict[str, Any]:
        """Upload `data` to `path` inside `bucket_id`."""
        headers = {
            "Content-Type": content_type,
            "x-upsert": "true" if upsert else "false",
        }
        logger.debug(f"Uploading {len(data)} bytes to {bucket_id}/{path}")
        response = await self._request(
            "POST",
            f"{StorageApiUrls.OBJECT}/{bucket_id}/{path}",
            headers=headers,
            content=data,
        )
        return response.json()

    async def download(self, bucket_id: str, path: str) -> bytes:
        response = await self._request(
            "GET", f"{StorageApiUrls.OBJECT}/{bucket_id}/{path}"
        )
        return response.content

    async def remove(self, bucket_id: str, paths: list[str]) -> list[dict[str, Any]]:
        return await self._delete(
            f"{StorageApiUrls.OBJECT}/{bucket_id}", payload={"prefixes": paths}
        )

    async def create_signed_url(
        self, bucket_id: str, path: str, expires_in: int
    ) -> str:
        """Return a URL granting read access to one object for `expires_in` seconds."""
        data = await self._post(
            f"{StorageApiUrls.SIGN}/{bucket_id}/{path}",
            payload={"expiresIn": expires_in},
        )
        return f"{self.base_url}{data['signedURL']}"
