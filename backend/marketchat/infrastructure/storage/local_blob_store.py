"""
LocalBlobStore - chat images on the local disk.

Objects are written under Config.UPLOAD_BASE and served by the FastAPI
static mount, so the returned URL is Config.PUBLIC_MEDIA_URL + path.
Disk writes are blocking and run in a worker thread.
"""

import asyncio
import logging
import os
import re

from marketchat.config.settings import Config
from marketchat.domain.ports.blob_store import BlobStore

logger = logging.getLogger(__name__)

_SAFE_SEGMENT = re.compile(r"^[\w\-. ]+$")


class LocalBlobStore(BlobStore):
    def __init__(self, upload_base: str = None, public_url: str = None):
        self.upload_base = os.path.abspath(upload_base or Config.UPLOAD_BASE)
        self.public_url = (public_url or Config.PUBLIC_MEDIA_URL).rstrip("/")

    async def put_object(self, path: str, data: bytes, content_type: str) -> str:
        file_path = self._resolve(path)
        await asyncio.to_thread(self._write, file_path, data)
        logger.debug(f"[BlobStore] Saved {path} ({len(data)} bytes, {content_type})")
        return f"{self.public_url}/{path}"

    def _resolve(self, path: str) -> str:
        """Map an object path to a file below upload_base, rejecting traversal."""
        segments = path.split("/")
        if not segments or any(
            s in ("", ".", "..") or not _SAFE_SEGMENT.match(s) for s in segments
        ):
            raise ValueError(f"Invalid object path: {path!r}")
        return os.path.join(self.upload_base, *segments)

    @staticmethod
    def _write(file_path: str, data: bytes) -> None:
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "wb") as f:
            f.write(data)
