"""
Identity Gateway Port - the privileged boundary that maps accounts to handles.

Implementations:
- marketchat/infrastructure/identity/hashed_identity_gateway.py (in-process)
- marketchat/infrastructure/identity/http_identity_gateway.py (remote)
- marketchat/infrastructure/identity/cached_identity_gateway.py (Redis decorator)

Every method raises IdentityResolutionError when it cannot answer.
"""

from abc import ABC, abstractmethod

from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle


class IdentityGateway(ABC):
    @abstractmethod
    async def own_handle(self, account_id: AccountId) -> Handle: ...

    @abstractmethod
    async def conversation_peer(
        self, conversation_id: ConversationId, viewer_id: AccountId
    ) -> Handle:
        """Handle of the other participant; the viewer must be a participant."""
        ...

    @abstractmethod
    async def resolve_account(self, handle: Handle) -> AccountId: ...
