"""
Conversations API Router - FastAPI endpoints for the conversation directory.

- Receives the session registry via Dependency Injection (Dishka)
- Thin layer: only handles HTTP concerns (request/response)
- Domain errors are mapped to status codes by the app's exception handlers

Flow:
  HTTP Request → Router → ChatSession → Handler → Repository → Database
                                   ↓
  HTTP Response ← Router ← DTO ←
"""

from logging import getLogger
from fastapi import APIRouter, Depends, HTTPException, status
from dishka.integrations.fastapi import FromDishka, inject
from pydantic import BaseModel, Field

from marketchat.application.dto.chat import MessageDTO, MessageListDTO
from marketchat.application.dto.conversation import (
    ConversationDTO,
    ConversationListDTO,
)
from marketchat.application.services.session_registry import ChatSessionRegistry
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle
from marketchat.presentation.dependencies.auth import AuthAccount, get_current_account

logger = getLogger(__name__)


# ==================== REQUEST/RESPONSE MODELS ====================


class StartConversationRequest(BaseModel):
    """Request body for starting (or finding) a conversation with a handle."""

    peer_handle: str = Field(min_length=1)


class StartConversationResponse(BaseModel):
    id: str


class CloseConversationResponse(BaseModel):
    success: bool


def parse_conversation_id(raw: str) -> ConversationId:
    """Malformed ids are reported exactly like unknown ones."""
    try:
        return ConversationId(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Conversation {raw} not found",
        )


# ==================== ROUTER ====================

router = APIRouter(prefix="/conversations", tags=["conversations"])


# ==================== ENDPOINTS ====================


@router.get(
    "",
    response_model=ConversationListDTO,
    status_code=status.HTTP_200_OK,
)
@inject
async def list_conversations(
    registry: FromDishka[ChatSessionRegistry],
    current: AuthAccount = Depends(get_current_account),
):
    """List the caller's conversations, most recent activity first."""
    session = await registry.get(current.account, current.session_key)
    summaries = await session.list_conversations()
    conversations = [ConversationDTO.from_summary(s) for s in summaries]
    return ConversationListDTO(conversations=conversations, total=len(conversations))


@router.post(
    "",
    response_model=StartConversationResponse,
    status_code=status.HTTP_201_CREATED,
)
@inject
async def start_conversation(
    request: StartConversationRequest,
    registry: FromDishka[ChatSessionRegistry],
    current: AuthAccount = Depends(get_current_account),
):
    """
    Find or create the conversation with the account behind peer_handle.

    Calling this from either side, any number of times, returns the same id.
    """
    try:
        peer_handle = Handle(request.peer_handle)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from e
    session = await registry.get(current.account, current.session_key)
    conversation_id = await session.start_conversation(peer_handle)
    return StartConversationResponse(id=conversation_id.value)


@router.post(
    "/{conversation_id}/open",
    response_model=MessageListDTO,
    status_code=status.HTTP_200_OK,
)
@inject
async def open_conversation(
    conversation_id: str,
    registry: FromDishka[ChatSessionRegistry],
    current: AuthAccount = Depends(get_current_account),
):
    """Open a conversation (closing any other) and return its history."""
    conv_id = parse_conversation_id(conversation_id)
    session = await registry.get(current.account, current.session_key)
    messages = await session.open_conversation(conv_id)
    return MessageListDTO(
        conversation_id=conv_id.value,
        messages=[MessageDTO.from_entity(m) for m in messages],
    )


@router.delete(
    "/{conversation_id}/open",
    response_model=CloseConversationResponse,
    status_code=status.HTTP_200_OK,
)
@inject
async def close_conversation(
    conversation_id: str,
    registry: FromDishka[ChatSessionRegistry],
    current: AuthAccount = Depends(get_current_account),
):
    conv_id = parse_conversation_id(conversation_id)
    session = await registry.get(current.account, current.session_key)
    await session.close_conversation(conv_id)
    return CloseConversationResponse(success=True)
