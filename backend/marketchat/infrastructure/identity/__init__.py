"""
Identity gateways - implementations of the privileged account/handle boundary.
"""

from marketchat.infrastructure.identity.hashed_identity_gateway import (
    HashedIdentityGateway,
    derive_handle,
)
from marketchat.infrastructure.identity.http_identity_gateway import (
    HttpIdentityGateway,
)
from marketchat.infrastructure.identity.cached_identity_gateway import (
    CachedIdentityGateway,
)

__all__ = [
    "HashedIdentityGateway",
    "HttpIdentityGateway",
    "CachedIdentityGateway",
    "derive_handle",
]
