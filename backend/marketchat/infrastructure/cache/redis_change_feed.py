"""
Redis Change Feed - pub/sub "conversation changed" notifications.

Channel pattern: "conv:{conversation_id}:changes"
Payload: the conversation id (subscribers ignore it and just refresh)

Redis pub/sub is fire-and-forget: a subscriber that is reconnecting misses
messages, and nothing is replayed. That is acceptable because a notification
only moves the next poll forward.
"""

import asyncio
import logging
from typing import Callable, Optional
from redis.asyncio import Redis
from redis.asyncio.client import PubSub
from marketchat.domain.ports.change_feed import ChangeFeed, Subscription
from marketchat.domain.value_objects.conversation_id import ConversationId

logger = logging.getLogger(__name__)


def channel_name(conversation_id: ConversationId) -> str:
    return f"conv:{conversation_id.value}:changes"


class RedisSubscription(Subscription):
    def __init__(
        self, pubsub: PubSub, channel: str, callback: Callable[[], None]
    ):
        self._pubsub = pubsub
        self._channel = channel
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        self._task = asyncio.create_task(self._listen())

    async def _listen(self) -> None:
        try:
            async for message in self._pubsub.listen():
                if message.get("type") == "message":
                    self._callback()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Polling keeps the view correct; just stop listening
            logger.warning(f"[ChangeFeed] Listener on {self._channel} stopped: {e}")

    async def close(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self._pubsub.unsubscribe(self._channel)
        await self._pubsub.aclose()


class RedisChangeFeed(ChangeFeed):
    def __init__(self, redis: Redis):
        self._redis = redis

    async def subscribe(
        self, conversation_id: ConversationId, callback: Callable[[], None]
    ) -> Subscription:
        channel = channel_name(conversation_id)
        pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(channel)
        subscription = RedisSubscription(pubsub, channel, callback)
        subscription.start()
        logger.debug(f"[ChangeFeed] Subscribed to {channel}")
        return subscription

    async def publish(self, conversation_id: ConversationId) -> None:
        await self._redis.publish(channel_name(conversation_id), conversation_id.value)
