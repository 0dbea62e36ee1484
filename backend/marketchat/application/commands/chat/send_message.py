"""
SendMessage Command - persist one message from a participant.

Handler:
1. Validate input (text and/or image, text length)
2. Verify the conversation and that the sender takes part in it
3. Resolve the sender's handle (identity failures abort before any write)
4. Upload the attachment, if any (failures abort, no message row)
5. Save the message; the store assigns the authoritative timestamp
6. Update the conversation's last-message summary (best effort)
7. Notify the change feed (best effort)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from marketchat.application.commands.conversations.update_last_message import (
    UpdateLastMessageCommand,
    UpdateLastMessageHandler,
)
from marketchat.application.commands.files.upload_attachment import (
    UploadAttachmentCommand,
    UploadAttachmentHandler,
    validate_attachment,
)
from marketchat.application.common.interfaces import Command, CommandHandler
from marketchat.application.services.identity_anonymizer import IdentityAnonymizer
from marketchat.config.settings import Config
from marketchat.domain.entities.message import Message, MessageRecord, MessageStatus
from marketchat.domain.exceptions import (
    AccessDeniedError,
    DomainValidationError,
    EntityNotFoundError,
    SendFailedError,
)
from marketchat.domain.ports.change_feed import ChangeFeed
from marketchat.domain.ports.repositories import (
    ConversationRepository,
    MessageRepository,
)
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.attachment import Attachment
from marketchat.domain.value_objects.conversation_id import ConversationId

logger = logging.getLogger(__name__)


def normalize_content(
    content: Optional[str], attachment: Optional[Attachment] = None
) -> Optional[str]:
    """
    Validate what the composer submitted and return the text to store.

    Whitespace-only text counts as no text. Raises before anything is written.
    """
    if content is not None and len(content) > Config.MESSAGE_MAX_LENGTH:
        raise DomainValidationError(
            f"Message cannot exceed {Config.MESSAGE_MAX_LENGTH} characters"
        )
    text = content if content and content.strip() else None
    if text is None and attachment is None:
        raise DomainValidationError("Message needs text or an image")
    if attachment is not None:
        validate_attachment(attachment)
    return text


@dataclass(frozen=True)
class SendMessageCommand(Command[Message]):
    conversation_id: ConversationId
    sender_id: AccountId
    content: Optional[str] = None
    attachment: Optional[Attachment] = None


class SendMessageHandler(CommandHandler[Message]):
    def __init__(
        self,
        conv_repo: ConversationRepository,
        msg_repo: MessageRepository,
        anonymizer: IdentityAnonymizer,
        upload_handler: UploadAttachmentHandler,
        update_last_message_handler: UpdateLastMessageHandler,
        change_feed: Optional[ChangeFeed] = None,
    ):
        self.conv_repo = conv_repo
        self.msg_repo = msg_repo
        self.anonymizer = anonymizer
        self.upload_handler = upload_handler
        self.update_last_message_handler = update_last_message_handler
        self.change_feed = change_feed

    async def execute(self, command: SendMessageCommand) -> Message:
        text = normalize_content(command.content, command.attachment)

        conversation = await self.conv_repo.get_by_id(command.conversation_id)
        if not conversation:
            raise EntityNotFoundError("Conversation not found.")
        if not conversation.includes(command.sender_id):
            raise AccessDeniedError("Access denied to this conversation.")

        own_handle = await self.anonymizer.resolve_own_handle(command.sender_id)

        image_url = None
        if command.attachment is not None:
            image_url = await self.upload_handler.execute(
                UploadAttachmentCommand(owner=own_handle, attachment=command.attachment)
            )

        record = MessageRecord.create(
            conversation_id=command.conversation_id,
            sender_id=command.sender_id,
            content=text,
            image_url=image_url,
        )
        try:
            saved = await self.msg_repo.save(record)
        except Exception as e:
            logger.error(f"[Send] Saving message to {command.conversation_id} failed: {e}")
            raise SendFailedError(f"Message could not be saved: {e}") from e

        await self.update_last_message_handler.execute(
            UpdateLastMessageCommand(
                conversation_id=command.conversation_id,
                text=text or Config.IMAGE_ONLY_PREVIEW,
                at=saved.created_at,
            )
        )
        await self._notify(command.conversation_id)

        return Message(
            id=saved.id,
            conversation_id=saved.conversation_id,
            sender=own_handle,
            content=saved.content,
            created_at=saved.created_at,
            image_url=saved.image_url,
            status=MessageStatus.CONFIRMED,
            has_attachment=saved.image_url is not None,
        )

    async def _notify(self, conversation_id: ConversationId) -> None:
        if self.change_feed is None:
            return
        try:
            await self.change_feed.publish(conversation_id)
        except Exception as e:
            logger.warning(f"[Send] Change notification failed: {e}")
