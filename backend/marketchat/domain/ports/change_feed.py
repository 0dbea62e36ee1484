"""
Change Feed Port - optional "something changed" notifications per conversation.

Delivery is best effort: notifications may be dropped or duplicated, so
subscribers only use them to refresh early, never as the source of truth.
Implementation: marketchat/infrastructure/cache/redis_change_feed.py
"""

from abc import ABC, abstractmethod
from typing import Callable

from marketchat.domain.value_objects.conversation_id import ConversationId


class Subscription(ABC):
    @abstractmethod
    async def close(self) -> None: ...


class ChangeFeed(ABC):
    @abstractmethod
    async def subscribe(
        self, conversation_id: ConversationId, callback: Callable[[], None]
    ) -> Subscription: ...

    @abstractmethod
    async def publish(self, conversation_id: ConversationId) -> None: ...
