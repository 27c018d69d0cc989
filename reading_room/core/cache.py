import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

KEY_PREFIX = "reading_room"


class CacheService:
    """Fixed-window counters kept in Redis.

    Counter names are namespaced under ``KEY_PREFIX``.  A window starts
    with the first increment and lasts ``window_seconds``; later
    increments do not extend it.

    Without a Redis client (or when Redis errors) counters read as 0 and
    increments are dropped, so callers degrade to "unlimited" instead of
    failing.
    """

    def __init__(self, redis_client: Optional[Redis] = None, prefix: str = KEY_PREFIX) -> None:
        self._redis = redis_client
        self._prefix = prefix

    def key(self, name: str) -> str:
        return f"{self._prefix}:{name}"

    async def read_counter(self, name: str) -> int:
        if self._redis is None:
            return 0
        key = self.key(name)
        try:
            raw = await self._redis.get(key)
        except (RedisError, ConnectionError, OSError):
            logger.warning("Could not read counter %s", key)
            return 0
        if raw is None:
            return 0
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning("Counter %s holds a non-integer value %r", key, raw)
            return 0

    async def bump_counter(self, name: str, window_seconds: int) -> Optional[int]:
        """Increment a counter, opening its window on the first hit.

        Returns the new count, or ``None`` when nothing was recorded.
        """
        if self._redis is None:
            return None
        key = self.key(name)
        try:
            count = await self._redis.incr(key)
            if count == 1:
                await self._redis.expire(key, window_seconds)
            return count
        except (RedisError, ConnectionError, OSError):
            logger.warning("Could not increment counter %s", key)
            return None

    async def window_remaining(self, name: str) -> Optional[int]:
        """Seconds until the counter's window closes, if one is open."""
        if self._redis is None:
            return None
        key = self.key(name)
        try:
            remaining = await self._redis.ttl(key)
        except (RedisError, ConnectionError, OSError):
            logger.warning("Could not read TTL of counter %s", key)
            return None
        return remaining if remaining is not None and remaining > 0 else None

    async def clear_counter(self, name: str) -> None:
        if self._redis is None:
            return
        key = self.key(name)
        try:
            await self._redis.delete(key)
        except (RedisError, ConnectionError, OSError):
            logger.warning("Could not clear counter %s", key)
