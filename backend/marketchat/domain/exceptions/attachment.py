"""
Attachment errors - user input rejected before anything is uploaded.

PayloadTooLargeError maps to HTTP 413, UnsupportedMediaTypeError to HTTP 415.
"""


class PayloadTooLargeError(Exception):
    """Raised when an attachment is above the byte ceiling."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Attachment is {size} bytes, the limit is {limit} bytes")
        self.size = size
        self.limit = limit


class UnsupportedMediaTypeError(Exception):
    """Raised when an attachment is not an allowed image type."""

    def __init__(self, content_type: str):
        super().__init__(f"Unsupported attachment type: {content_type or 'unknown'}")
        self.content_type = content_type
