import copy
from typing import TYPE_CHECKING, Any, AsyncGenerator, Dict
from unittest.mock import AsyncMock, MagicMock

if TYPE_CHECKING:
    from reading_room.core.cache import CacheService

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from reading_room.core.default_scoring_rules import DEFAULT_SCORING_RULES
from reading_room.main import app


def rules_config(room_type: str, **enabled: Dict[str, Any]) -> Dict[str, Any]:
    """Default rules for *room_type* with everything disabled except *enabled*.

    Each keyword names a rule; its value is merged into that rule's
    config and the rule is switched on.
    """
    config = copy.deepcopy(DEFAULT_SCORING_RULES[room_type])
    for rule in config.values():
        rule["enabled"] = False
    for name, fields in enabled.items():
        config[name].update(fields)
        config[name]["enabled"] = True
    return config


def make_rule_row(rules: Dict[str, Any]) -> MagicMock:
    row = MagicMock()
    row.rules_config = rules
    return row


def make_threshold_row(problem_max=40, solution_max=60, offer_min=61) -> MagicMock:
    row = MagicMock()
    row.problem_max = problem_max
    row.solution_max = solution_max
    row.offer_min = offer_min
    return row


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock()
    redis.incr = AsyncMock(return_value=1)
    redis.expire = AsyncMock()
    redis.ttl = AsyncMock(return_value=-2)
    redis.ping = AsyncMock()
    return redis


@pytest.fixture
def mock_cache(mock_redis) -> "CacheService":
    """Return a ``CacheService`` backed by the mock Redis client."""
    from reading_room.core.cache import CacheService

    return CacheService(redis_client=mock_redis)
