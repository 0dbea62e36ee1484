"""
EntityNotFoundError - a conversation or message the caller asked for is not
there, or is not the one currently open in the caller's session.
Maps to: HTTP 404 Not Found
"""


class EntityNotFoundError(Exception):
    """Raised for unknown conversations and messages."""

    def __init__(self, message: str = "Conversation not found"):
        super().__init__(message)
