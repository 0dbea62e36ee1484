"""
Message Entities.

MessageRecord is the stored row and carries the sender's raw AccountId; it
never leaves the application layer. Message is what a participant sees: the
sender is a Handle, and optimistic entries carry a client-side status.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle
from marketchat.domain.value_objects.message_id import MessageId


class MessageStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class MessageRecord:
    id: MessageId
    conversation_id: ConversationId
    sender_id: AccountId
    content: Optional[str]
    created_at: datetime
    image_url: Optional[str] = None

    @classmethod
    def create(
        cls,
        conversation_id: ConversationId,
        sender_id: AccountId,
        content: Optional[str],
        image_url: Optional[str] = None,
    ) -> MessageRecord:
        """Factory method; the store may replace created_at with its own clock."""
        return cls(
            id=MessageId.generate(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            created_at=datetime.now(timezone.utc),
            image_url=image_url,
        )


@dataclass
class Message:
    id: MessageId
    conversation_id: ConversationId
    sender: Handle
    content: Optional[str]
    created_at: datetime
    image_url: Optional[str] = None
    status: MessageStatus = MessageStatus.CONFIRMED
    has_attachment: bool = False
    error: Optional[str] = None

    @classmethod
    def pending(
        cls,
        conversation_id: ConversationId,
        sender: Handle,
        content: Optional[str],
        has_attachment: bool = False,
    ) -> Message:
        """Optimistic entry shown before the store acknowledges the send."""
        return cls(
            id=MessageId.generate(),
            conversation_id=conversation_id,
            sender=sender,
            content=content,
            created_at=datetime.now(timezone.utc),
            status=MessageStatus.PENDING,
            has_attachment=has_attachment,
        )

    @property
    def is_confirmed(self) -> bool:
        return self.status == MessageStatus.CONFIRMED

    @property
    def is_pending(self) -> bool:
        return self.status == MessageStatus.PENDING

    @property
    def is_failed(self) -> bool:
        return self.status == MessageStatus.FAILED

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return (self.created_at, self.id.value)

    def mark_failed(self, reason: str) -> None:
        if self.is_confirmed:
            raise ValueError("A confirmed message cannot fail")
        self.status = MessageStatus.FAILED
        self.error = reason

    def mark_pending(self) -> None:
        if self.is_confirmed:
            raise ValueError("A confirmed message cannot be resent")
        self.status = MessageStatus.PENDING
        self.error = None
