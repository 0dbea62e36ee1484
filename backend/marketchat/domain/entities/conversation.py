"""
Conversation Entity - a private chat between exactly two accounts.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.participant_pair import ParticipantPair


@dataclass
class Conversation:
    id: ConversationId
    participant1_id: AccountId
    participant2_id: AccountId
    created_at: datetime
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None

    @classmethod
    def create(cls, initiator: AccountId, peer: AccountId) -> Conversation:
        """Factory method: the initiator is stored as participant 1."""
        ParticipantPair.of(initiator, peer)
        return cls(
            id=ConversationId(str(uuid4())),
            participant1_id=initiator,
            participant2_id=peer,
            created_at=datetime.now(timezone.utc),
        )

    @property
    def pair(self) -> ParticipantPair:
        return ParticipantPair.of(self.participant1_id, self.participant2_id)

    def includes(self, account_id: AccountId) -> bool:
        return account_id in (self.participant1_id, self.participant2_id)

    def other_participant(self, account_id: AccountId) -> AccountId:
        if account_id == self.participant1_id:
            return self.participant2_id
        if account_id == self.participant2_id:
            return self.participant1_id
        raise ValueError(f"{account_id} is not a participant of {self.id}")

    def record_last_message(self, text: str, at: datetime) -> bool:
        """Apply the summary unless a newer message is already recorded."""
        if self.last_message_at is not None and at <= self.last_message_at:
            return False
        self.last_message = text
        self.last_message_at = at
        return True

    @property
    def activity_at(self) -> datetime:
        """Timestamp used to order the conversation list."""
        return self.last_message_at or self.created_at
