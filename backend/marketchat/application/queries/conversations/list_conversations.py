"""
List Conversations Query.

Directory view for one account: each entry shows the other participant by
handle, with display name and avatar, and the last-message summary.
Peer handles are resolved concurrently. An entry whose peer cannot be resolved
is logged and left out; the listing only fails when no entry resolves.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from marketchat.application.common.interfaces import Query, QueryHandler
from marketchat.application.services.identity_anonymizer import IdentityAnonymizer
from marketchat.config.settings import Config
from marketchat.domain.ports.repositories import (
    ConversationRepository,
    ProfileRepository,
)
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle

logger = logging.getLogger(__name__)


@dataclass
class ConversationSummary:
    id: ConversationId
    created_at: datetime
    peer_handle: Handle
    peer_name: Optional[str] = None
    peer_avatar_url: Optional[str] = None
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None


@dataclass(frozen=True)
class ListConversationsQuery(Query[list[ConversationSummary]]):
    viewer_id: AccountId
    limit: int = Config.CONVERSATION_USER_LIMIT


class ListConversationsHandler(QueryHandler[list[ConversationSummary]]):
    def __init__(
        self,
        conversation_repository: ConversationRepository,
        profile_repository: ProfileRepository,
        anonymizer: IdentityAnonymizer,
    ):
        self._conversation_repository = conversation_repository
        self._profile_repository = profile_repository
        self._anonymizer = anonymizer

    async def execute(
        self, query: ListConversationsQuery
    ) -> list[ConversationSummary]:
        conversations = await self._conversation_repository.get_by_participant(
            query.viewer_id, query.limit
        )
        if not conversations:
            return []

        # Newest activity first, regardless of how the store ordered them
        conversations.sort(key=lambda c: c.activity_at, reverse=True)

        peers = [c.other_participant(query.viewer_id) for c in conversations]
        profiles = await self._profile_repository.get_many(list(set(peers)))

        handles = await asyncio.gather(
            *(
                self._anonymizer.resolve_conversation_peer(c.id, query.viewer_id)
                for c in conversations
            ),
            return_exceptions=True,
        )
        failures = [h for h in handles if isinstance(h, BaseException)]
        for failure in failures:
            if not isinstance(failure, Exception):
                raise failure
        if failures and len(failures) == len(handles):
            raise failures[0]

        summaries = []
        for conversation, peer_id, peer_handle in zip(conversations, peers, handles):
            if isinstance(peer_handle, BaseException):
                logger.warning(
                    f"[Directory] Skipping {conversation.id}: {peer_handle}"
                )
                continue
            profile = profiles.get(peer_id)
            summaries.append(
                ConversationSummary(
                    id=conversation.id,
                    created_at=conversation.created_at,
                    peer_handle=peer_handle,
                    peer_name=profile.display_name if profile else None,
                    peer_avatar_url=profile.avatar_url if profile else None,
                    last_message=conversation.last_message,
                    last_message_at=conversation.last_message_at,
                )
            )

        logger.debug(
            f"[Directory] Listed {len(summaries)} conversation(s) for viewer"
        )
        return summaries
