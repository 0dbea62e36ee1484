"""
DTOs - Data Transfer Objects

DTOs for transferring data between layers:
- chat.py → MessageDTO, MessageListDTO
- conversation.py → ConversationDTO, ConversationListDTO

Note: These are different from domain entities.
DTOs are for API input/output, entities are for business logic.
Only handles appear here; account ids never do.
"""

from marketchat.application.dto.chat import MessageDTO, MessageListDTO
from marketchat.application.dto.conversation import (
    ConversationDTO,
    ConversationListDTO,
)

__all__ = [
    "MessageDTO",
    "MessageListDTO",
    "ConversationDTO",
    "ConversationListDTO",
]
