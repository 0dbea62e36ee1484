"""
Dishka DI Container Setup.

- InfrastructureProvider maps domain ports to concrete implementations
  (Prisma, Redis, identity gateway, blob store)
- ChatProvider (application.py) wires handlers and sessions on top

Dishka concepts:
- Provider: Class that defines how to create dependencies
- @provide: Decorator to mark factory methods
- Scope.APP: created once, shared by every request and chat session
- Generator providers: code after `yield` runs on container.close()

Flow:
  Container → provides → PrismaConversationRepository → to → FindOrCreateConversationHandler
                                    ↓
                            uses ConversationRepository interface
"""

import logging
from typing import AsyncIterable, Optional
from dishka import Provider, Scope, make_async_container, provide, AsyncContainer
from prisma import Prisma
from redis.asyncio import Redis

from marketchat.config.settings import Config
from marketchat.domain.ports.blob_store import BlobStore
from marketchat.domain.ports.change_feed import ChangeFeed
from marketchat.domain.ports.identity_gateway import IdentityGateway
from marketchat.domain.ports.repositories import (
    ConversationRepository,
    MessageRepository,
    ProfileRepository,
)
from marketchat.infrastructure.cache import (
    RedisChangeFeed,
    close_redis_client,
    create_redis_client,
)
from marketchat.infrastructure.identity import (
    CachedIdentityGateway,
    HashedIdentityGateway,
    HttpIdentityGateway,
)
from marketchat.infrastructure.persistence import (
    PrismaConversationRepository,
    PrismaMessageRepository,
    PrismaProfileRepository,
)
from marketchat.infrastructure.storage import LocalBlobStore, SupabaseBlobStore
from marketchat.setup.ioc.application import ChatProvider

logger = logging.getLogger(__name__)


class InfrastructureProvider(Provider):
    """Registers the concrete implementations of every domain port."""

    # ==================== DATABASE ====================

    @provide(scope=Scope.APP)
    async def get_prisma(self) -> AsyncIterable[Prisma]:
        """
        Provide Prisma client (singleton, app-scoped).

        - async because connect() is async
        - disconnected when the container closes
        """
        prisma = Prisma()
        await prisma.connect()
        yield prisma
        await prisma.disconnect()

    # ==================== REDIS ====================

    @provide(scope=Scope.APP)
    async def get_redis(self) -> AsyncIterable[Optional[Redis]]:
        """Redis client, or None when Redis is disabled or unreachable."""
        client = None
        if Config.USE_REDIS:
            try:
                client = await create_redis_client()
            except Exception as e:
                logger.warning(f"[Redis] Unavailable, running without cache: {e}")
        yield client
        if client is not None:
            await close_redis_client(client)

    @provide(scope=Scope.APP)
    def get_change_feed(self, redis: Optional[Redis]) -> Optional[ChangeFeed]:
        if redis is None or not Config.USE_CHANGE_FEED:
            return None
        return RedisChangeFeed(redis)

    # ==================== REPOSITORIES ====================

    @provide(scope=Scope.APP)
    def get_conversation_repository(self, prisma: Prisma) -> ConversationRepository:
        """
        - Return type is ABSTRACT (ConversationRepository)
        - Implementation is CONCRETE (PrismaConversationRepository)
        """
        return PrismaConversationRepository(prisma)

    @provide(scope=Scope.APP)
    def get_message_repository(self, prisma: Prisma) -> MessageRepository:
        return PrismaMessageRepository(prisma)

    @provide(scope=Scope.APP)
    def get_profile_repository(self, prisma: Prisma) -> ProfileRepository:
        return PrismaProfileRepository(prisma)

    # ==================== IDENTITY ====================

    @provide(scope=Scope.APP)
    def get_identity_gateway(
        self,
        profile_repository: ProfileRepository,
        conversation_repository: ConversationRepository,
        redis: Optional[Redis],
    ) -> IdentityGateway:
        """
        Remote edge functions when IDENTITY_GATEWAY_URL is set, otherwise the
        in-process HMAC gateway; wrapped in the Redis cache when available.
        """
        if Config.IDENTITY_GATEWAY_URL:
            gateway: IdentityGateway = HttpIdentityGateway()
        else:
            gateway = HashedIdentityGateway(profile_repository, conversation_repository)
        if redis is not None:
            gateway = CachedIdentityGateway(gateway, redis)
        return gateway

    # ==================== STORAGE ====================

    @provide(scope=Scope.APP)
    def get_blob_store(self) -> BlobStore:
        if Config.BLOB_BACKEND == "supabase":
            return SupabaseBlobStore()
        return LocalBlobStore()


def create_container() -> AsyncContainer:
    """
    Create and configure the DI container.

    - make_async_container() creates the container with all providers
    - Call this ONCE at app startup
    """
    return make_async_container(InfrastructureProvider(), ChatProvider())
