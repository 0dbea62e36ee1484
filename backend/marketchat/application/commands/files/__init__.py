"""File commands."""

from .upload_attachment import (
    UploadAttachmentCommand,
    UploadAttachmentHandler,
    validate_attachment,
)

__all__ = [
    "UploadAttachmentCommand",
    "UploadAttachmentHandler",
    "validate_attachment",
]
