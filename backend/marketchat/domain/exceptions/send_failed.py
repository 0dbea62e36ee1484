"""
SendFailedError - A message could not be delivered.

The optimistic entry stays visible, marked failed, so it can be retried.
Maps to: HTTP 502 Bad Gateway
"""


class SendFailedError(Exception):
    """Raised when persisting a message (or its attachment) fails."""

    def __init__(self, message: str = "Message could not be sent"):
        super().__init__(message)


class AttachmentUploadError(SendFailedError):
    """Raised when the blob store rejects or loses an attachment upload."""

    def __init__(self, message: str = "Attachment upload failed"):
        super().__init__(message)
