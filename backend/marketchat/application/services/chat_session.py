"""
ChatSession - everything one signed-in account can do with chat.

A session has at most one open conversation. Opening another one closes the
current view first, so a rapid switch never shows messages from the
conversation that was left.
"""

import logging
from typing import Optional

from marketchat.application.commands.chat.send_message import SendMessageHandler
from marketchat.application.commands.conversations.find_or_create_conversation import (
    FindOrCreateConversationCommand,
    FindOrCreateConversationHandler,
)
from marketchat.application.queries.chat.get_chat_history import GetChatHistoryHandler
from marketchat.application.queries.conversations.list_conversations import (
    ConversationSummary,
    ListConversationsHandler,
    ListConversationsQuery,
)
from marketchat.application.services.conversation_sync import ConversationSync
from marketchat.application.services.identity_anonymizer import IdentityAnonymizer
from marketchat.config.settings import Config
from marketchat.domain.entities.account import Account
from marketchat.domain.entities.message import Message
from marketchat.domain.exceptions import AccessDeniedError, EntityNotFoundError
from marketchat.domain.ports.change_feed import ChangeFeed
from marketchat.domain.value_objects.attachment import Attachment
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle
from marketchat.domain.value_objects.message_id import MessageId

logger = logging.getLogger(__name__)


class ChatSession:
    def __init__(
        self,
        account: Account,
        anonymizer: IdentityAnonymizer,
        list_handler: ListConversationsHandler,
        find_or_create_handler: FindOrCreateConversationHandler,
        history_handler: GetChatHistoryHandler,
        send_handler: SendMessageHandler,
        change_feed: Optional[ChangeFeed] = None,
        poll_interval: Optional[float] = None,
        match_window: Optional[float] = None,
        require_verified: Optional[bool] = None,
    ):
        self.account = account
        self._anonymizer = anonymizer
        self._list_handler = list_handler
        self._find_or_create_handler = find_or_create_handler
        self._history_handler = history_handler
        self._send_handler = send_handler
        self._change_feed = change_feed
        self._poll_interval = poll_interval
        self._match_window = match_window
        self._require_verified = (
            Config.REQUIRE_VERIFIED_EMAIL if require_verified is None else require_verified
        )
        self._sync: Optional[ConversationSync] = None

    @property
    def open_conversation_id(self) -> Optional[ConversationId]:
        return self._sync.conversation_id if self._sync else None

    async def current_own_handle(self) -> Handle:
        self._check_verified()
        return await self._anonymizer.resolve_own_handle(self.account.id)

    async def list_conversations(self) -> list[ConversationSummary]:
        self._check_verified()
        return await self._list_handler.execute(
            ListConversationsQuery(viewer_id=self.account.id)
        )

    async def start_conversation(self, peer_handle: Handle) -> ConversationId:
        self._check_verified()
        return await self._find_or_create_handler.execute(
            FindOrCreateConversationCommand(
                viewer_id=self.account.id, peer_handle=peer_handle
            )
        )

    async def open_conversation(self, conversation_id: ConversationId) -> list[Message]:
        self._check_verified()
        if self._sync is not None and self._sync.conversation_id == conversation_id:
            if self._sync.is_open:
                return self._sync.messages
        await self.close_conversation()

        sync = ConversationSync(
            conversation_id=conversation_id,
            viewer_id=self.account.id,
            history_handler=self._history_handler,
            send_handler=self._send_handler,
            change_feed=self._change_feed,
            poll_interval=self._poll_interval,
            match_window=self._match_window,
        )
        self._sync = sync
        try:
            return await sync.open()
        except Exception:
            if self._sync is sync:
                self._sync = None
            raise

    async def close_conversation(
        self, conversation_id: Optional[ConversationId] = None
    ) -> None:
        """Close the open view; with an id, only when that view is the open one."""
        sync = self._sync
        if sync is None:
            return
        if conversation_id is not None and sync.conversation_id != conversation_id:
            return
        self._sync = None
        await sync.close()

    async def send_message(
        self,
        conversation_id: ConversationId,
        content: Optional[str],
        attachment: Optional[Attachment] = None,
    ) -> Message:
        return await self._open_sync(conversation_id).send(content, attachment)

    async def retry_message(
        self, conversation_id: ConversationId, message_id: MessageId
    ) -> Message:
        return await self._open_sync(conversation_id).retry(message_id)

    def current_messages(
        self, conversation_id: Optional[ConversationId] = None
    ) -> list[Message]:
        sync = self._sync
        if sync is None or not sync.is_open:
            return []
        if conversation_id is not None and sync.conversation_id != conversation_id:
            return []
        return sync.messages

    async def close(self) -> None:
        await self.close_conversation()

    def _open_sync(self, conversation_id: ConversationId) -> ConversationSync:
        self._check_verified()
        sync = self._sync
        if sync is None or sync.conversation_id != conversation_id:
            raise EntityNotFoundError(f"Conversation {conversation_id} is not open")
        return sync

    def _check_verified(self) -> None:
        if self._require_verified and not self.account.email_verified:
            raise AccessDeniedError("Email address is not verified")
