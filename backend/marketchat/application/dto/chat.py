"""Chat DTOs for API request/response."""

from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel
from typing import Optional

from marketchat.domain.entities.message import Message


class MessageDTO(BaseModel):
    """DTO for message data returned to frontend."""

    id: str
    conversation_id: str
    sender: str
    content: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    status: str
    error: Optional[str] = None

    @classmethod
    def from_entity(cls, message: Message) -> MessageDTO:
        return cls(
            id=message.id.value,
            conversation_id=message.conversation_id.value,
            sender=message.sender.value,
            content=message.content,
            image_url=message.image_url,
            created_at=message.created_at,
            status=message.status.value,
            error=message.error,
        )


class MessageListDTO(BaseModel):
    conversation_id: str
    messages: list[MessageDTO]
