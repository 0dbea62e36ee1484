"""
Chat API Router - FastAPI endpoints for messages of the open conversation.

Sending is multipart so an image can travel with the text:
    content: optional text (≤ MESSAGE_MAX_LENGTH)
    image:   optional file (jpeg/png/gif/webp, ≤ ATTACHMENT_MAX_MB)

Flow:
  HTTP Request → Router → ChatSession → ConversationSync → SendMessageHandler
                                                              ↓
  HTTP Response ← Router ← MessageDTO ←            upload → store → summary
"""

from logging import getLogger
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from dishka.integrations.fastapi import FromDishka, inject

from marketchat.application.dto.chat import MessageDTO, MessageListDTO
from marketchat.application.services.session_registry import ChatSessionRegistry
from marketchat.config.settings import Config
from marketchat.domain.value_objects.attachment import Attachment
from marketchat.domain.value_objects.message_id import MessageId
from marketchat.presentation.api.conversations import parse_conversation_id
from marketchat.presentation.dependencies.auth import AuthAccount, get_current_account

logger = getLogger(__name__)


async def _read_attachment(image: Optional[UploadFile]) -> Optional[Attachment]:
    if image is None or not image.filename:
        return None
    # One byte past the limit is enough to reject it
    data = await image.read(Config.ATTACHMENT_MAX_BYTES + 1)
    return Attachment(
        filename=image.filename,
        content_type=image.content_type or "application/octet-stream",
        content=data,
    )


# ==================== ROUTER ====================

router = APIRouter(prefix="/conversations", tags=["chat"])


# ==================== ENDPOINTS ====================


@router.get(
    "/{conversation_id}/messages",
    response_model=MessageListDTO,
    status_code=status.HTTP_200_OK,
)
@inject
async def list_messages(
    conversation_id: str,
    registry: FromDishka[ChatSessionRegistry],
    current: AuthAccount = Depends(get_current_account),
):
    """
    Current view of the open conversation, pending and failed sends included.

    Empty when the conversation is not the one currently open.
    """
    conv_id = parse_conversation_id(conversation_id)
    session = await registry.get(current.account, current.session_key)
    messages = session.current_messages(conv_id)
    return MessageListDTO(
        conversation_id=conv_id.value,
        messages=[MessageDTO.from_entity(m) for m in messages],
    )


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageDTO,
    status_code=status.HTTP_201_CREATED,
)
@inject
async def send_message(
    conversation_id: str,
    registry: FromDishka[ChatSessionRegistry],
    current: AuthAccount = Depends(get_current_account),
    content: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
):
    conv_id = parse_conversation_id(conversation_id)
    session = await registry.get(current.account, current.session_key)
    attachment = await _read_attachment(image)
    message = await session.send_message(conv_id, content, attachment)
    logger.debug(f"[Chat] Message {message.id} confirmed in {conv_id}")
    return MessageDTO.from_entity(message)


@router.post(
    "/{conversation_id}/messages/{message_id}/retry",
    response_model=MessageDTO,
    status_code=status.HTTP_201_CREATED,
)
@inject
async def retry_message(
    conversation_id: str,
    message_id: str,
    registry: FromDishka[ChatSessionRegistry],
    current: AuthAccount = Depends(get_current_account),
):
    """Re-submit a failed send in place."""
    conv_id = parse_conversation_id(conversation_id)
    try:
        msg_id = MessageId(message_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Message {message_id} not found",
        )
    session = await registry.get(current.account, current.session_key)
    message = await session.retry_message(conv_id, msg_id)
    return MessageDTO.from_entity(message)
