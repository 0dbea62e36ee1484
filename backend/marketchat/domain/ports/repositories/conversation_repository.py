"""
Conversation Repository Port - Interface for conversation persistence.
Implementation: marketchat/infrastructure/persistence/prisma_conversation_repository.py
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from marketchat.domain.entities.conversation import Conversation
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.participant_pair import ParticipantPair


class ConversationRepository(ABC):
    @abstractmethod
    async def get_by_id(
        self, conversation_id: ConversationId
    ) -> Optional[Conversation]: ...

    @abstractmethod
    async def get_by_pair(self, pair: ParticipantPair) -> Optional[Conversation]: ...

    @abstractmethod
    async def get_by_participant(
        self, account_id: AccountId, limit: int
    ) -> list[Conversation]:
        """Conversations the account takes part in, most recent activity first."""
        ...

    @abstractmethod
    async def create_if_absent(self, conversation: Conversation) -> Conversation:
        """
        Insert the conversation unless its participant pair already has one.

        Returns whichever conversation owns the pair afterwards, so concurrent
        callers for the same pair all get the same row back.
        """
        ...

    @abstractmethod
    async def update_last_message(
        self, conversation_id: ConversationId, text: str, at: datetime
    ) -> bool:
        """
        Record the summary only if `at` is newer than the stored one.

        Returns False when a newer summary was already in place.
        """
        ...
