"""
SelfConversationError - Raised when an account tries to chat with itself.
Maps to: HTTP 409 Conflict
"""


class SelfConversationError(Exception):
    """Raised when both participants resolve to the same account."""

    def __init__(self, message: str = "Cannot start a conversation with yourself"):
        super().__init__(message)
