"""
VALUE OBJECTS - Immutable domain types

Each value object:
- Has no identity (compared by value, not by ID)
- Is immutable (frozen dataclass)
- Validates itself on creation
- Pure Python (no framework dependencies)
"""

from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.handle import Handle
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.message_id import MessageId
from marketchat.domain.value_objects.participant_pair import ParticipantPair
from marketchat.domain.value_objects.attachment import Attachment

__all__ = [
    "AccountId",
    "Handle",
    "ConversationId",
    "MessageId",
    "ParticipantPair",
    "Attachment",
]
