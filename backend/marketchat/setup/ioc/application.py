"""
Application wiring - handlers, services and the chat session registry.

Everything here depends only on domain ports, so the same provider is used
with the real infrastructure (container.py) and with in-memory fakes in tests.

All dependencies are APP scoped: chat sessions outlive the request that
created them, so the handlers they hold must too.
"""

from typing import AsyncIterable, Optional
from dishka import Provider, Scope, provide

from marketchat.application.commands.chat.send_message import SendMessageHandler
from marketchat.application.commands.conversations import (
    FindOrCreateConversationHandler,
    UpdateLastMessageHandler,
)
from marketchat.application.commands.files import UploadAttachmentHandler
from marketchat.application.queries.chat import GetChatHistoryHandler
from marketchat.application.queries.conversations import ListConversationsHandler
from marketchat.application.services.chat_session import ChatSession
from marketchat.application.services.identity_anonymizer import IdentityAnonymizer
from marketchat.application.services.session_registry import ChatSessionRegistry
from marketchat.domain.entities.account import Account
from marketchat.domain.ports.blob_store import BlobStore
from marketchat.domain.ports.change_feed import ChangeFeed
from marketchat.domain.ports.identity_gateway import IdentityGateway
from marketchat.domain.ports.repositories import (
    ConversationRepository,
    MessageRepository,
    ProfileRepository,
)


class ChatProvider(Provider):
    """
    Application dependency provider.

    Expects the ports (repositories, IdentityGateway, BlobStore and
    Optional[ChangeFeed]) from another provider.
    """

    # ==================== SERVICES ====================

    @provide(scope=Scope.APP)
    def get_identity_anonymizer(self, gateway: IdentityGateway) -> IdentityAnonymizer:
        return IdentityAnonymizer(gateway)

    # ==================== HANDLERS ====================

    @provide(scope=Scope.APP)
    def get_list_conversations_handler(
        self,
        conversation_repository: ConversationRepository,
        profile_repository: ProfileRepository,
        anonymizer: IdentityAnonymizer,
    ) -> ListConversationsHandler:
        return ListConversationsHandler(
            conversation_repository, profile_repository, anonymizer
        )

    @provide(scope=Scope.APP)
    def get_find_or_create_conversation_handler(
        self,
        conversation_repository: ConversationRepository,
        anonymizer: IdentityAnonymizer,
    ) -> FindOrCreateConversationHandler:
        return FindOrCreateConversationHandler(conversation_repository, anonymizer)

    @provide(scope=Scope.APP)
    def get_update_last_message_handler(
        self, conversation_repository: ConversationRepository
    ) -> UpdateLastMessageHandler:
        return UpdateLastMessageHandler(conversation_repository)

    @provide(scope=Scope.APP)
    def get_upload_attachment_handler(
        self, blob_store: BlobStore
    ) -> UploadAttachmentHandler:
        return UploadAttachmentHandler(blob_store)

    @provide(scope=Scope.APP)
    def get_chat_history_handler(
        self,
        conversation_repository: ConversationRepository,
        message_repository: MessageRepository,
        anonymizer: IdentityAnonymizer,
    ) -> GetChatHistoryHandler:
        return GetChatHistoryHandler(
            conv_repo=conversation_repository,
            msg_repo=message_repository,
            anonymizer=anonymizer,
        )

    @provide(scope=Scope.APP)
    def get_send_message_handler(
        self,
        conversation_repository: ConversationRepository,
        message_repository: MessageRepository,
        anonymizer: IdentityAnonymizer,
        upload_handler: UploadAttachmentHandler,
        update_last_message_handler: UpdateLastMessageHandler,
        change_feed: Optional[ChangeFeed],
    ) -> SendMessageHandler:
        return SendMessageHandler(
            conv_repo=conversation_repository,
            msg_repo=message_repository,
            anonymizer=anonymizer,
            upload_handler=upload_handler,
            update_last_message_handler=update_last_message_handler,
            change_feed=change_feed,
        )

    # ==================== SESSIONS ====================

    @provide(scope=Scope.APP)
    async def get_session_registry(
        self,
        anonymizer: IdentityAnonymizer,
        list_handler: ListConversationsHandler,
        find_or_create_handler: FindOrCreateConversationHandler,
        history_handler: GetChatHistoryHandler,
        send_handler: SendMessageHandler,
        change_feed: Optional[ChangeFeed],
    ) -> AsyncIterable[ChatSessionRegistry]:
        """
        Idle sessions are swept while the app runs; open conversations are
        closed before the ports they use go away.
        """

        def new_session(account: Account) -> ChatSession:
            return ChatSession(
                account=account,
                anonymizer=anonymizer,
                list_handler=list_handler,
                find_or_create_handler=find_or_create_handler,
                history_handler=history_handler,
                send_handler=send_handler,
                change_feed=change_feed,
            )

        registry = ChatSessionRegistry(new_session)
        registry.start_sweeper()
        yield registry
        await registry.close_all()
