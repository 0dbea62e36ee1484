"""
Upload Attachment Command - the attachment pipeline.

An image is checked against the allow-list and the size ceiling before any
network write, then stored under the owner's handle. The returned URL is
durable; a message never references an upload that has not finished.
"""

import logging
from dataclasses import dataclass
from uuid import uuid4

from marketchat.application.common.interfaces import Command, CommandHandler
from marketchat.config.settings import Config
from marketchat.domain.exceptions import (
    AttachmentUploadError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)
from marketchat.domain.ports.blob_store import BlobStore
from marketchat.domain.value_objects.attachment import Attachment
from marketchat.domain.value_objects.handle import Handle

logger = logging.getLogger(__name__)

# The stored extension follows the checked type, not the client filename
_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def validate_attachment(attachment: Attachment) -> None:
    """Raise if the attachment must be rejected; never touches the network."""
    content_type = (attachment.content_type or "").split(";")[0].strip().lower()
    if content_type not in Config.ATTACHMENT_MIME_TYPES:
        raise UnsupportedMediaTypeError(attachment.content_type)
    if attachment.size > Config.ATTACHMENT_MAX_BYTES:
        raise PayloadTooLargeError(attachment.size, Config.ATTACHMENT_MAX_BYTES)


@dataclass(frozen=True)
class UploadAttachmentCommand(Command[str]):
    owner: Handle
    attachment: Attachment


class UploadAttachmentHandler(CommandHandler[str]):
    def __init__(self, blob_store: BlobStore):
        self._blob_store = blob_store

    async def execute(self, command: UploadAttachmentCommand) -> str:
        attachment = command.attachment
        validate_attachment(attachment)

        content_type = attachment.content_type.split(";")[0].strip().lower()
        extension = _EXTENSIONS.get(content_type) or attachment.extension or "bin"
        path = f"{command.owner.value}/{uuid4().hex}.{extension}"

        try:
            url = await self._blob_store.put_object(
                path, attachment.content, content_type
            )
        except Exception as e:
            logger.error(f"[Attachment] Upload of {path} failed: {e}")
            raise AttachmentUploadError(f"Attachment upload failed: {e}") from e

        if not url:
            raise AttachmentUploadError("Blob store returned no URL")

        logger.info(f"[Attachment] Uploaded {path} ({attachment.size} bytes)")
        return url
