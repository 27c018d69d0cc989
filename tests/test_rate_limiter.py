from unittest.mock import AsyncMock

import pytest

from reading_room.core.cache import CacheService
from reading_room.core.exceptions import GenerationRateLimitError
from reading_room.services.generation_rate_limiter import GenerationRateLimiter


class TestGenerationRateLimiter:
    """Hourly AI generation allowance backed by a Redis counter."""

    @pytest.mark.asyncio
    async def test_under_limit_passes(self, mock_cache, mock_redis):
        mock_redis.get.return_value = "4"
        limiter = GenerationRateLimiter(mock_cache, limit=5)

        await limiter.check_limit()
        assert await limiter.get_remaining() == 1

    @pytest.mark.asyncio
    async def test_at_limit_raises(self, mock_cache, mock_redis):
        mock_redis.get.return_value = "5"
        mock_redis.ttl.return_value = 1200
        limiter = GenerationRateLimiter(mock_cache, limit=5)

        with pytest.raises(GenerationRateLimitError) as exc_info:
            await limiter.check_limit()
        assert exc_info.value.detail.endswith("resets in 1200s")
        assert await limiter.get_remaining() == 0

    @pytest.mark.asyncio
    async def test_first_increment_sets_window(self, mock_cache, mock_redis):
        limiter = GenerationRateLimiter(mock_cache, limit=5)

        await limiter.increment()

        mock_redis.incr.assert_awaited_once_with("reading_room:ai_generations")
        mock_redis.expire.assert_awaited_once_with("reading_room:ai_generations", 3600)

    @pytest.mark.asyncio
    async def test_later_increment_keeps_window(self, mock_cache, mock_redis):
        mock_redis.incr.return_value = 3
        limiter = GenerationRateLimiter(mock_cache, limit=5)

        await limiter.increment()

        mock_redis.expire.assert_not_called()

    @pytest.mark.asyncio
    async def test_reset_deletes_counter(self, mock_cache, mock_redis):
        await GenerationRateLimiter(mock_cache).reset()

        mock_redis.delete.assert_awaited_once_with("reading_room:ai_generations")

    @pytest.mark.asyncio
    async def test_without_redis_everything_is_allowed(self):
        limiter = GenerationRateLimiter(CacheService(redis_client=None), limit=1)

        await limiter.increment()
        await limiter.check_limit()
        assert await limiter.get_current_count() == 0

    @pytest.mark.asyncio
    async def test_redis_errors_degrade_to_zero(self, mock_cache, mock_redis):
        mock_redis.get.side_effect = ConnectionError("redis gone")
        limiter = GenerationRateLimiter(mock_cache, limit=1)

        await limiter.check_limit()
        assert await limiter.get_current_count() == 0

    @pytest.mark.asyncio
    async def test_garbage_counter_reads_as_zero(self, mock_cache, mock_redis):
        mock_redis.get.return_value = "lots"

        assert await GenerationRateLimiter(mock_cache).get_current_count() == 0
