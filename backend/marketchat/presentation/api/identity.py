"""
Identity API Router - the caller's own handle.

The handle is what the caller shares with others (e.g. on a vendor card)
so they can start a conversation without learning the account id.
"""

from fastapi import APIRouter, Depends, status
from dishka.integrations.fastapi import FromDishka, inject
from pydantic import BaseModel

from marketchat.application.services.session_registry import ChatSessionRegistry
from marketchat.presentation.dependencies.auth import AuthAccount, get_current_account


class OwnHandleResponse(BaseModel):
    handle: str


router = APIRouter(prefix="/me", tags=["identity"])


@router.get(
    "/handle",
    response_model=OwnHandleResponse,
    status_code=status.HTTP_200_OK,
)
@inject
async def get_own_handle(
    registry: FromDishka[ChatSessionRegistry],
    current: AuthAccount = Depends(get_current_account),
):
    session = await registry.get(current.account, current.session_key)
    handle = await session.current_own_handle()
    return OwnHandleResponse(handle=handle.value)
