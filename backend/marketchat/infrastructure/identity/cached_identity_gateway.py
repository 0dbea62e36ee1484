"""
Cached Identity Gateway - Decorator pattern for Redis caching.

Architecture:
    CachedIdentityGateway (decorator)
        ↓ wraps
    HashedIdentityGateway / HttpIdentityGateway
        ↓ implements
    IdentityGateway (abstract interface)

Redis keys (STRING, TTL Config.REDIS_CACHE_TTL):
- "handle:own:{account_id}"          → handle
- "handle:peer:{conversation}:{viewer}" → handle
- "handle:account:{handle}"          → account id

Handles never change for an account and conversations are never deleted, so
cached answers cannot go stale; the TTL only bounds memory. Failed lookups
are not cached.

Error Handling:
- Cache failures never fail the lookup: log and ask the wrapped gateway
"""

import logging
from typing import Awaitable, Callable, Optional
from redis.asyncio import Redis

from marketchat.config.settings import Config
from marketchat.domain.ports.identity_gateway import IdentityGateway
from marketchat.domain.value_objects.account_id import AccountId
from marketchat.domain.value_objects.conversation_id import ConversationId
from marketchat.domain.value_objects.handle import Handle

logger = logging.getLogger(__name__)


class CachedIdentityGateway(IdentityGateway):
    def __init__(self, gateway: IdentityGateway, redis: Redis, ttl: int = None):
        self._gateway = gateway
        self._redis = redis
        self._ttl = ttl or Config.REDIS_CACHE_TTL

    async def own_handle(self, account_id: AccountId) -> Handle:
        value = await self._cached(
            f"handle:own:{account_id.value}",
            lambda: self._handle_value(self._gateway.own_handle(account_id)),
        )
        return Handle(value)

    async def conversation_peer(
        self, conversation_id: ConversationId, viewer_id: AccountId
    ) -> Handle:
        value = await self._cached(
            f"handle:peer:{conversation_id.value}:{viewer_id.value}",
            lambda: self._handle_value(
                self._gateway.conversation_peer(conversation_id, viewer_id)
            ),
        )
        return Handle(value)

    async def resolve_account(self, handle: Handle) -> AccountId:
        async def load() -> str:
            account_id = await self._gateway.resolve_account(handle)
            return account_id.value

        value = await self._cached(f"handle:account:{handle.value}", load)
        return AccountId(value)

    @staticmethod
    async def _handle_value(awaitable: Awaitable[Handle]) -> str:
        handle = await awaitable
        return handle.value

    async def _cached(self, key: str, load: Callable[[], Awaitable[str]]) -> str:
        # 1. Try cache first (fast path)
        cached: Optional[str] = None
        try:
            cached = await self._redis.get(key)
        except Exception as e:
            logger.warning(f"Redis cache read error for {key}: {str(e)}")
        if cached:
            logger.debug(f"Cache HIT for {key}")
            return cached

        # 2. Cache miss - ask the wrapped gateway
        value = await load()

        # 3. Populate cache (best effort)
        try:
            await self._redis.setex(key, self._ttl, value)
        except Exception as e:
            logger.warning(f"Redis cache write error for {key}: {str(e)}")
        return value
