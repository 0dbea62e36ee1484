"""
Cache Layer - Redis implementations.

Contains the async Redis client factory and the pub/sub change feed.
The Redis handle cache lives with the identity gateways.
"""

from marketchat.infrastructure.cache.redis_client import (
    create_redis_client,
    close_redis_client,
)
from marketchat.infrastructure.cache.redis_change_feed import RedisChangeFeed

__all__ = [
    "create_redis_client",
    "close_redis_client",
    "RedisChangeFeed",
]
