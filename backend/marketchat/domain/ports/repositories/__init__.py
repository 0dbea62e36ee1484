"""
REPOSITORY PORTS - Data persistence interfaces

Each repository port:
- Is an abstract base class (ABC)
- Defines methods the domain needs
- Does NOT specify implementation (Prisma, in-memory, etc.)

Infrastructure layer provides implementations.
"""

from marketchat.domain.ports.repositories.conversation_repository import (
    ConversationRepository,
)
from marketchat.domain.ports.repositories.message_repository import MessageRepository
from marketchat.domain.ports.repositories.profile_repository import ProfileRepository

__all__ = [
    "ConversationRepository",
    "MessageRepository",
    "ProfileRepository",
]
