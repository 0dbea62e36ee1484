"""Conversation-related queries."""

from marketchat.application.queries.conversations.list_conversations import (
    ConversationSummary,
    ListConversationsQuery,
    ListConversationsHandler,
)

__all__ = [
    "ConversationSummary",
    "ListConversationsQuery",
    "ListConversationsHandler",
]
