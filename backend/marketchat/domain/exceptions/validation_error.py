"""
DomainValidationError - composer input that can never be sent as-is
(no text and no image, or text over the length limit).
Maps to: HTTP 422 Unprocessable Entity
"""


class DomainValidationError(Exception):
    """Raised before anything is written or shown as pending."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
