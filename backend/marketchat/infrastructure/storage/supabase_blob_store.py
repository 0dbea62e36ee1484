"""
SupabaseBlobStore - chat images in a public Supabase Storage bucket.

Upload:  POST {SUPABASE_URL}/storage/v1/object/{bucket}/{path}
Public:  {SUPABASE_URL}/storage/v1/object/public/{bucket}/{path}
"""

import logging
from typing import Optional

import httpx

from marketchat.config.settings import Config
from marketchat.domain.ports.blob_store import BlobStore

logger = logging.getLogger(__name__)


class SupabaseBlobStore(BlobStore):
    def __init__(
        self,
        base_url: str = None,
        service_key: str = None,
        bucket: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or Config.SUPABASE_URL).rstrip("/")
        self._service_key = service_key or Config.SUPABASE_SERVICE_KEY
        self.bucket = bucket or Config.CHAT_IMAGES_BUCKET
        self._timeout = timeout or Config.BLOB_UPLOAD_TIMEOUT
        self._transport = transport

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    async def put_object(self, path: str, data: bytes, content_type: str) -> str:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.post(
                f"{self.base_url}/storage/v1/object/{self.bucket}/{path}",
                content=data,
                headers={
                    "Authorization": f"Bearer {self._service_key}",
                    "apikey": self._service_key,
                    "Content-Type": content_type,
                    "x-upsert": "false",
                },
            )
            # Raises httpx.HTTPStatusError; the upload handler wraps it
            response.raise_for_status()

        logger.debug(f"[BlobStore] Uploaded {path} to bucket {self.bucket}")
        return self.public_url(path)
