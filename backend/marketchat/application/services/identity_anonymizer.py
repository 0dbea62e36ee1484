"""
Identity Anonymizer - the only application component that sees accounts and
handles side by side.

Everything it hands out to the rest of the core is keyed by Handle. Raw
AccountIds go in; handles come out.
"""

import logging
from marketchat.domain.entities.message import Message, MessageRecord, MessageStatus
from marketchat.domain.exceptions import IdentityResolutionError
from marketchat.domain.ports.identity_gateway import IdentityGateway
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle

logger = logging.getLogger(__name__)


class IdentityAnonymizer:
    def __init__(self, gateway: IdentityGateway):
        self._gateway = gateway
        self._own_handles: dict[AccountId, Handle] = {}

    async def resolve_own_handle(self, account_id: AccountId) -> Handle:
        """Handle for the caller's own account, cached for the process lifetime."""
        cached = self._own_handles.get(account_id)
        if cached is not None:
            return cached
        handle = await self._call(self._gateway.own_handle(account_id))
        self._own_handles[account_id] = handle
        return handle

    async def resolve_conversation_peer(
        self, conversation_id: ConversationId, viewer_id: AccountId
    ) -> Handle:
        """
        Handle of the other participant.

        Always asked of the privileged boundary, which also checks that the
        viewer belongs to the conversation.
        """
        return await self._call(
            self._gateway.conversation_peer(conversation_id, viewer_id)
        )

    async def resolve_account(self, handle: Handle) -> AccountId:
        """Privileged reverse lookup, reserved for starting a conversation."""
        return await self._call(self._gateway.resolve_account(handle))

    def anonymize(
        self,
        record: MessageRecord,
        viewer_id: AccountId,
        own_handle: Handle,
        peer_handle: Handle,
    ) -> Message:
        """Project a stored row into what the viewer is allowed to see."""
        sender = own_handle if record.sender_id == viewer_id else peer_handle
        return Message(
            id=record.id,
            conversation_id=record.conversation_id,
            sender=sender,
            content=record.content,
            created_at=record.created_at,
            image_url=record.image_url,
            status=MessageStatus.CONFIRMED,
            has_attachment=record.image_url is not None,
        )

    async def _call(self, awaitable):
        try:
            return await awaitable
        except IdentityResolutionError:
            raise
        except Exception as e:
            logger.warning(f"[Identity] Gateway call failed: {type(e).__name__}: {e}")
            raise IdentityResolutionError(f"Identity service unavailable: {e}") from e
