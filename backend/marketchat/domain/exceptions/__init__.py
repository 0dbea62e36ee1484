"""
DOMAIN EXCEPTIONS - Business rule violations

These exceptions are raised by domain and application logic and caught by the
presentation layer, which maps them to HTTP status codes.
"""

from marketchat.domain.exceptions.entity_not_found import EntityNotFoundError
from marketchat.domain.exceptions.access_denied import AccessDeniedError
from marketchat.domain.exceptions.validation_error import DomainValidationError
from marketchat.domain.exceptions.identity_resolution import IdentityResolutionError
from marketchat.domain.exceptions.self_conversation import SelfConversationError
from marketchat.domain.exceptions.load_error import LoadError
from marketchat.domain.exceptions.attachment import (
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)
from marketchat.domain.exceptions.send_failed import (
    SendFailedError,
    AttachmentUploadError,
)

__all__ = [
    "EntityNotFoundError",
    "AccessDeniedError",
    "DomainValidationError",
    "IdentityResolutionError",
    "SelfConversationError",
    "LoadError",
    "PayloadTooLargeError",
    "UnsupportedMediaTypeError",
    "SendFailedError",
    "AttachmentUploadError",
]
