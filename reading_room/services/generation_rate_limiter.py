import logging
from typing import Optional

from reading_room.core.cache import CacheService
from reading_room.core.config import settings
from reading_room.core.exceptions import GenerationRateLimitError


logger = logging.getLogger(__name__)

COUNTER_NAME = "ai_generations"
WINDOW_SECONDS = 3600


class GenerationRateLimiter:
    """Hourly allowance of AI generation calls, counted in Redis.

    Without Redis nothing is counted and every call is allowed.
    """

    def __init__(self, cache: CacheService, limit: Optional[int] = None) -> None:
        self._cache = cache
        self._limit = settings.AI_RATE_LIMIT_PER_HOUR if limit is None else limit

    async def get_current_count(self) -> int:
        return await self._cache.read_counter(COUNTER_NAME)

    async def get_remaining(self) -> int:
        return max(0, self._limit - await self.get_current_count())

    async def check_limit(self) -> None:
        """Raise ``GenerationRateLimitError`` once the hourly allowance is spent."""
        current = await self.get_current_count()
        if current < self._limit:
            return

        logger.warning(
            "AI generation rate limit reached (%d/%d per hour)", current, self._limit
        )
        detail = f"AI generation rate limit exceeded ({current}/{self._limit} per hour)"
        retry_after = await self._cache.window_remaining(COUNTER_NAME)
        if retry_after is not None:
            detail += f", resets in {retry_after}s"
        raise GenerationRateLimitError(detail)

    async def increment(self) -> None:
        await self._cache.bump_counter(COUNTER_NAME, WINDOW_SECONDS)

    async def reset(self) -> None:
        await self._cache.clear_counter(COUNTER_NAME)
