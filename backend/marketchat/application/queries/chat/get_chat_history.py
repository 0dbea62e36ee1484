"""
GetChatHistory Query - ordered messages of one conversation, as the viewer
sees them (senders by handle).

Used by the sync engine both for the initial load and for each
reconciliation cycle. Callers that already know the handles pass them in so
a refresh does not go back to the identity boundary.
"""

from dataclasses import dataclass
from typing import Optional

from marketchat.application.common.interfaces import Query, QueryHandler
from marketchat.application.services.identity_anonymizer import IdentityAnonymizer
from marketchat.domain.entities.message import Message
from marketchat.domain.exceptions import AccessDeniedError, EntityNotFoundError
from marketchat.domain.ports.repositories import (
    ConversationRepository,
    MessageRepository,
)
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle


@dataclass
class GetChatHistoryResult:
    """Handles of both sides plus the ordered messages."""

    conversation_id: ConversationId
    own_handle: Handle
    peer_handle: Handle
    messages: list[Message]


@dataclass(frozen=True)
class GetChatHistoryQuery(Query[GetChatHistoryResult]):
    conversation_id: ConversationId
    viewer_id: AccountId
    # None fetches the whole history
    limit: Optional[int] = None
    own_handle: Optional[Handle] = None
    peer_handle: Optional[Handle] = None


class GetChatHistoryHandler(QueryHandler[GetChatHistoryResult]):
    def __init__(
        self,
        conv_repo: ConversationRepository,
        msg_repo: MessageRepository,
        anonymizer: IdentityAnonymizer,
    ):
        self._conv_repo = conv_repo
        self._msg_repo = msg_repo
        self._anonymizer = anonymizer

    async def execute(self, query: GetChatHistoryQuery) -> GetChatHistoryResult:
        """
        Raises:
            EntityNotFoundError: If the conversation doesn't exist
            AccessDeniedError: If the viewer is not a participant
            IdentityResolutionError: If handles cannot be resolved
        """
        conversation = await self._conv_repo.get_by_id(query.conversation_id)
        if not conversation:
            raise EntityNotFoundError(
                f"Conversation {query.conversation_id.value} not found"
            )
        if not conversation.includes(query.viewer_id):
            raise AccessDeniedError("You don't have access to this conversation")

        own_handle = query.own_handle or await self._anonymizer.resolve_own_handle(
            query.viewer_id
        )
        peer_handle = (
            query.peer_handle
            or await self._anonymizer.resolve_conversation_peer(
                query.conversation_id, query.viewer_id
            )
        )

        records = await self._msg_repo.get_by_conversation(
            query.conversation_id, limit=query.limit
        )
        messages = [
            self._anonymizer.anonymize(record, query.viewer_id, own_handle, peer_handle)
            for record in records
        ]
        messages.sort(key=lambda m: m.sort_key)

        return GetChatHistoryResult(
            conversation_id=query.conversation_id,
            own_handle=own_handle,
            peer_handle=peer_handle,
            messages=messages,
        )
