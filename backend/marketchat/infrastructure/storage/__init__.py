"""
Storage Layer - Blob store implementations for chat images.
"""

from marketchat.infrastructure.storage.local_blob_store import LocalBlobStore
from marketchat.infrastructure.storage.supabase_blob_store import SupabaseBlobStore

__all__ = [
    "LocalBlobStore",
    "SupabaseBlobStore",
]
