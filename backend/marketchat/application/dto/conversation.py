"""Conversation DTOs for API request/response."""

from __future__ import annotations
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from marketchat.application.queries.conversations import ConversationSummary


class ConversationDTO(BaseModel):
    id: str
    peer_handle: str
    peer_name: Optional[str] = None
    peer_avatar_url: Optional[str] = None
    created_at: datetime
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None

    @classmethod
    def from_summary(cls, summary: ConversationSummary) -> ConversationDTO:
        return cls(
            id=summary.id.value,
            peer_handle=summary.peer_handle.value,
            peer_name=summary.peer_name,
            peer_avatar_url=summary.peer_avatar_url,
            created_at=summary.created_at,
            last_message=summary.last_message,
            last_message_at=summary.last_message_at,
        )


class ConversationListDTO(BaseModel):
    conversations: list[ConversationDTO]
    total: int
