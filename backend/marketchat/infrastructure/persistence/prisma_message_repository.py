"""
Prisma Message Repository Implementation.

Prisma Message Model (from prisma/schema.prisma):
    model Message {
        id              String   @id @default(uuid())
        conversation_id String
        sender_id       String
        content         String?
        image_url       String?
        created_at      DateTime @default(now())
    }

Mapping:
- Prisma: id (str) ←→ Domain: id (MessageId)
- Prisma: conversation_id (str) ←→ Domain: conversation_id (ConversationId)
- Prisma: sender_id (str) ←→ Domain: sender_id (AccountId)
- Other fields map directly

created_at is never sent on insert: the database clock is the single
authority for message order.
"""

from typing import Optional
from prisma import Prisma
from prisma.models import Message as PrismaMessage
from marketchat.domain.entities.message import MessageRecord
from marketchat.domain.ports.repositories import MessageRepository
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.message_id import MessageId


class PrismaMessageRepository(MessageRepository):
    _prisma: Prisma

    def __init__(self, prisma: Prisma):
        self._prisma = prisma

    def _to_entity(self, record: PrismaMessage) -> MessageRecord:
        """Map Prisma record to domain entity."""
        return MessageRecord(
            id=MessageId(record.id),
            conversation_id=ConversationId(record.conversation_id),
            sender_id=AccountId(record.sender_id),
            content=record.content,
            created_at=record.created_at,
            image_url=record.image_url,
        )

    async def get_by_conversation(
        self, conversation_id: ConversationId, limit: Optional[int] = None
    ) -> list[MessageRecord]:
        """Latest `limit` messages (all when None), returned oldest first."""
        records = await self._prisma.message.find_many(
            where={"conversation_id": conversation_id.value},
            order=[{"created_at": "desc"}, {"id": "desc"}],
            take=limit,
        )
        return [self._to_entity(record) for record in reversed(records)]

    async def save(self, record: MessageRecord) -> MessageRecord:
        data = {
            "id": record.id.value,
            "conversation_id": record.conversation_id.value,
            "sender_id": record.sender_id.value,
            "content": record.content,
            "image_url": record.image_url,
        }
        created = await self._prisma.message.create(data=data)
        return self._to_entity(created)
