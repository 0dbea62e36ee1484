"""
Persistence Layer - Database implementations.

Contains Prisma repository implementations for domain ports.
"""

from marketchat.infrastructure.persistence.prisma_conversation_repository import (
    PrismaConversationRepository,
)
from marketchat.infrastructure.persistence.prisma_message_repository import (
    PrismaMessageRepository,
)
from marketchat.infrastructure.persistence.prisma_profile_repository import (
    PrismaProfileRepository,
)

__all__ = [
    "PrismaConversationRepository",
    "PrismaMessageRepository",
    "PrismaProfileRepository",
]
