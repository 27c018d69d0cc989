import logging
from typing import Optional

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from reading_room.core.config import settings
from reading_room.core.database import get_db

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> Optional[Redis]:
    """Get an async Redis client, or ``None`` when Redis is unreachable."""
    try:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
        await client.ping()
        return client
    except Exception:
        logger.warning("Redis unavailable, generation counting disabled for this request")
        return None


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
):
    from reading_room.core.cache import CacheService

    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_visitor_repo(db: AsyncSession = Depends(get_db)):
    from reading_room.repositories.visitor_repository import VisitorRepository

    return VisitorRepository(db)


async def get_activity_repo(db: AsyncSession = Depends(get_db)):
    from reading_room.repositories.activity_repository import ActivityRepository

    return ActivityRepository(db)


async def get_scoring_rule_repo(db: AsyncSession = Depends(get_db)):
    from reading_room.repositories.scoring_rule_repository import ScoringRuleRepository

    return ScoringRuleRepository(db)


async def get_threshold_repo(db: AsyncSession = Depends(get_db)):
    from reading_room.repositories.threshold_repository import ThresholdRepository

    return ThresholdRepository(db)


async def get_template_repo(db: AsyncSession = Depends(get_db)):
    from reading_room.repositories.template_repository import TemplateRepository

    return TemplateRepository(db)


async def get_content_link_repo(db: AsyncSession = Depends(get_db)):
    from reading_room.repositories.content_link_repository import ContentLinkRepository

    return ContentLinkRepository(db)


async def get_prospect_repo(db: AsyncSession = Depends(get_db)):
    from reading_room.repositories.prospect_repository import ProspectRepository

    return ProspectRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_scoring_service(
    visitor_repo=Depends(get_visitor_repo),
    activity_repo=Depends(get_activity_repo),
    scoring_rule_repo=Depends(get_scoring_rule_repo),
    threshold_repo=Depends(get_threshold_repo),
):
    """Build a :class:`ScoringService` with injected repositories."""
    from reading_room.services.scoring_service import ScoringService

    return ScoringService(
        visitor_repo=visitor_repo,
        activity_repo=activity_repo,
        scoring_rule_repo=scoring_rule_repo,
        threshold_repo=threshold_repo,
    )


async def get_scoring_config_service(
    scoring_rule_repo=Depends(get_scoring_rule_repo),
    threshold_repo=Depends(get_threshold_repo),
):
    from reading_room.services.scoring_config_service import ScoringConfigService

    return ScoringConfigService(
        scoring_rule_repo=scoring_rule_repo,
        threshold_repo=threshold_repo,
    )


async def get_session_factory():
    """Session factory for work that opens its own sessions (batch scoring)."""
    from reading_room.core.database import AsyncSessionLocal

    return AsyncSessionLocal


async def get_template_resolver(template_repo=Depends(get_template_repo)):
    from reading_room.services.template_resolver import TemplateResolver

    return TemplateResolver(template_repo)


async def get_generation_rate_limiter(cache=Depends(get_cache_service)):
    from reading_room.services.generation_rate_limiter import GenerationRateLimiter

    return GenerationRateLimiter(cache)


async def get_text_generator():
    """Return the external text generator, if one is wired in.

    No generator ships with this service; deployments override this
    dependency.  Without one, outreach emails use the fallback path.
    """
    return None


async def get_outreach_email_service(
    prospect_repo=Depends(get_prospect_repo),
    content_link_repo=Depends(get_content_link_repo),
    template_resolver=Depends(get_template_resolver),
    rate_limiter=Depends(get_generation_rate_limiter),
    generator=Depends(get_text_generator),
):
    """Build an :class:`OutreachEmailService` with injected dependencies."""
    from reading_room.services.outreach_email_service import OutreachEmailService

    return OutreachEmailService(
        prospect_repo=prospect_repo,
        content_link_repo=content_link_repo,
        template_resolver=template_resolver,
        rate_limiter=rate_limiter,
        generator=generator,
    )
