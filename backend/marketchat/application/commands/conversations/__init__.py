"""Conversation commands."""

from .find_or_create_conversation import (
    FindOrCreateConversationCommand,
    FindOrCreateConversationHandler,
)
from .update_last_message import UpdateLastMessageCommand, UpdateLastMessageHandler

__all__ = [
    "FindOrCreateConversationCommand",
    "FindOrCreateConversationHandler",
    "UpdateLastMessageCommand",
    "UpdateLastMessageHandler",
]
