"""Chat commands."""

from .send_message import SendMessageCommand, SendMessageHandler, normalize_content

__all__ = [
    "SendMessageCommand",
    "SendMessageHandler",
    "normalize_content",
]
