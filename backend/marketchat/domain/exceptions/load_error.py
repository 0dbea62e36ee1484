"""
LoadError - Conversation history could not be loaded.

Retryable by opening the conversation again.
Maps to: HTTP 503 Service Unavailable
"""


class LoadError(Exception):
    """Raised when opening a conversation fails to fetch its history."""

    def __init__(self, message: str = "Could not load conversation"):
        super().__init__(message)
