"""
ENTITIES - Business objects with identity

Each entity:
- Has a unique identifier
- Has behavior (methods)
- Can change state over time
- Pure Python dataclasses (no ORM, no Pydantic)
"""

from marketchat.domain.entities.account import Account
from marketchat.domain.entities.profile import Profile
from marketchat.domain.entities.conversation import Conversation
from marketchat.domain.entities.message import Message, MessageRecord, MessageStatus

__all__ = [
    "Account",
    "Profile",
    "Conversation",
    "Message",
    "MessageRecord",
    "MessageStatus",
]
