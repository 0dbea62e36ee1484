"""
PORTS - Interfaces that infrastructure implements

A "port" is an abstract interface that defines WHAT the domain needs,
without specifying HOW it's done.

Subfolders:
- repositories/       → Data persistence interfaces
- identity_gateway.py → privileged account ⇄ handle mapping
- blob_store.py       → image object storage
- change_feed.py      → optional change notifications
"""

from marketchat.domain.ports.identity_gateway import IdentityGateway
from marketchat.domain.ports.blob_store import BlobStore
from marketchat.domain.ports.change_feed import ChangeFeed, Subscription

__all__ = [
    "IdentityGateway",
    "BlobStore",
    "ChangeFeed",
    "Subscription",
]
