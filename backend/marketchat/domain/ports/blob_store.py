"""
Blob Store Port - object storage for chat images.

Implementations: marketchat/infrastructure/storage/
"""

from abc import ABC, abstractmethod


class BlobStore(ABC):
    @abstractmethod
    async def put_object(self, path: str, data: bytes, content_type: str) -> str:
        """Store the object and return a durable, publicly fetchable URL."""
        ...
