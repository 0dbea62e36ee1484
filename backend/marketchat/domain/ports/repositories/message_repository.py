"""
Message Repository Port - Interface for message persistence.
Implementation: marketchat/infrastructure/persistence/prisma_message_repository.py
"""

from abc import ABC, abstractmethod
from typing import Optional

from marketchat.domain.entities.message import MessageRecord
from marketchat.domain.value_objects.conversation_id import ConversationId


class MessageRepository(ABC):
    @abstractmethod
    async def get_by_conversation(
        self, conversation_id: ConversationId, limit: Optional[int] = None
    ) -> list[MessageRecord]:
        """
        Latest `limit` messages, oldest first, ordered by (created_at, id).

        With no limit the whole history is returned.
        """
        ...

    @abstractmethod
    async def save(self, record: MessageRecord) -> MessageRecord:
        """Insert the record; the returned copy carries the store's created_at."""
        ...
