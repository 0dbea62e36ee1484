"""
Find-or-Create Conversation Command.

Starting a chat from either side lands in the same conversation:
1. Resolve the peer handle to an account (privileged step)
2. Reject chatting with yourself
3. Return the existing conversation for the pair, if any
4. Otherwise insert; the store's unique pair key settles concurrent inserts
"""

import logging
from dataclasses import dataclass

from marketchat.application.common.interfaces import Command, CommandHandler
from marketchat.application.services.identity_anonymizer import IdentityAnonymizer
from marketchat.domain.entities.conversation import Conversation
from marketchat.domain.exceptions import SelfConversationError
from marketchat.domain.ports.repositories import ConversationRepository
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle
from marketchat.domain.value_objects.participant_pair import ParticipantPair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FindOrCreateConversationCommand(Command[ConversationId]):
    viewer_id: AccountId
    peer_handle: Handle


class FindOrCreateConversationHandler(CommandHandler[ConversationId]):
    def __init__(
        self,
        conversation_repository: ConversationRepository,
        anonymizer: IdentityAnonymizer,
    ):
        self._conversation_repository = conversation_repository
        self._anonymizer = anonymizer

    async def execute(
        self, command: FindOrCreateConversationCommand
    ) -> ConversationId:
        peer_id = await self._anonymizer.resolve_account(command.peer_handle)
        if peer_id == command.viewer_id:
            raise SelfConversationError()

        pair = ParticipantPair.of(command.viewer_id, peer_id)
        existing = await self._conversation_repository.get_by_pair(pair)
        if existing:
            return existing.id

        conversation = Conversation.create(initiator=command.viewer_id, peer=peer_id)
        stored = await self._conversation_repository.create_if_absent(conversation)
        if stored.id == conversation.id:
            logger.info(f"[Directory] Created conversation {stored.id}")
        else:
            logger.info(f"[Directory] Lost creation race, reusing {stored.id}")
        return stored.id
