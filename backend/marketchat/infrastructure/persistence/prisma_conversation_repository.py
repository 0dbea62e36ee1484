"""
Prisma Conversation Repository Implementation.

Prisma Conversation Model (from prisma/schema.prisma):
    model Conversation {
        id              String    @id @default(uuid())
        participant1_id String
        participant2_id String
        pair_key        String    @unique
        last_message    String?
        last_message_at DateTime?
        created_at      DateTime  @default(now())
    }

The unique pair_key is what makes find-or-create safe: two concurrent inserts
for the same pair cannot both succeed, and the loser re-reads the winner.
"""

import logging
from datetime import datetime
from typing import Optional
from prisma import Prisma
from prisma.errors import UniqueViolationError
from prisma.models import Conversation as PrismaConversation
from marketchat.domain.entities.conversation import Conversation
from marketchat.domain.ports.repositories import ConversationRepository
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.participant_pair import ParticipantPair

logger = logging.getLogger(__name__)


class PrismaConversationRepository(ConversationRepository):
    _prisma: Prisma

    def __init__(self, prisma: Prisma):
        self._prisma = prisma

    def _to_entity(self, record: PrismaConversation) -> Conversation:
        """Map Prisma record to domain entity."""
        return Conversation(
            id=ConversationId(record.id),
            participant1_id=AccountId(record.participant1_id),
            participant2_id=AccountId(record.participant2_id),
            created_at=record.created_at,
            last_message=record.last_message,
            last_message_at=record.last_message_at,
        )

    async def get_by_id(
        self, conversation_id: ConversationId
    ) -> Optional[Conversation]:
        """Get conversation by ID."""
        record = await self._prisma.conversation.find_unique(
            where={"id": conversation_id.value}
        )
        return self._to_entity(record) if record else None

    async def get_by_pair(self, pair: ParticipantPair) -> Optional[Conversation]:
        record = await self._prisma.conversation.find_unique(
            where={"pair_key": pair.key}
        )
        return self._to_entity(record) if record else None

    async def get_by_participant(
        self, account_id: AccountId, limit: int
    ) -> list[Conversation]:
        """Conversations on either side of the pair, latest activity first."""
        records = await self._prisma.conversation.find_many(
            where={
                "OR": [
                    {"participant1_id": account_id.value},
                    {"participant2_id": account_id.value},
                ]
            },
        )
        # Postgres sorts NULL last_message_at first on DESC, so order here
        conversations = [self._to_entity(record) for record in records]
        conversations.sort(key=lambda c: c.activity_at, reverse=True)
        return conversations[:limit]

    async def create_if_absent(self, conversation: Conversation) -> Conversation:
        pair = conversation.pair
        try:
            record = await self._prisma.conversation.create(
                data={
                    "id": conversation.id.value,
                    "participant1_id": conversation.participant1_id.value,
                    "participant2_id": conversation.participant2_id.value,
                    "pair_key": pair.key,
                    "created_at": conversation.created_at,
                }
            )
            return self._to_entity(record)
        except UniqueViolationError:
            logger.debug(f"[Conversations] Pair {pair.key} already exists, re-reading")
            existing = await self.get_by_pair(pair)
            if existing is None:
                raise
            return existing

    async def update_last_message(
        self, conversation_id: ConversationId, text: str, at: datetime
    ) -> bool:
        # The summary only moves forward in time
        updated = await self._prisma.conversation.update_many(
            where={
                "id": conversation_id.value,
                "OR": [
                    {"last_message_at": None},
                    {"last_message_at": {"lt": at}},
                ],
            },
            data={"last_message": text, "last_message_at": at},
        )
        return updated > 0
