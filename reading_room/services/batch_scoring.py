import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from reading_room.core.config import settings
from reading_room.repositories.activity_repository import ActivityRepository
from reading_room.repositories.scoring_rule_repository import ScoringRuleRepository
from reading_room.repositories.threshold_repository import ThresholdRepository
from reading_room.repositories.visitor_repository import VisitorRepository
from reading_room.services.rule_resolver import ResolutionCache
from reading_room.services.scoring_service import ScoringService

logger = logging.getLogger(__name__)


def _effective_batch_size(batch_size: Optional[int]) -> int:
    size = batch_size or settings.SCORING_BATCH_SIZE
    return max(1, min(size, settings.SCORING_BATCH_SIZE_MAX))


def _concurrency_limit() -> int:
    """Visitors scored at once, capped at the connection pool's capacity."""
    pool_capacity = settings.DB_POOL_SIZE + settings.DB_MAX_OVERFLOW
    return max(1, min(settings.SCORING_MAX_CONCURRENCY, pool_capacity))


async def _score_one(
    session_factory: Callable[..., AsyncSession],
    visitor_id: UUID,
    client_id: Optional[int],
    force: bool,
    cache: ResolutionCache,
    stop_event: Optional[asyncio.Event],
    slots: asyncio.Semaphore,
) -> Optional[bool]:
    """Score a single visitor in its own session.

    Returns ``True`` on success, ``False`` on failure and ``None`` when
    the stop signal was set before a slot freed up.
    """
    async with slots:
        if stop_event is not None and stop_event.is_set():
            return None
        return await _score_in_session(
            session_factory, visitor_id, client_id, force, cache
        )


async def _score_in_session(
    session_factory: Callable[..., AsyncSession],
    visitor_id: UUID,
    client_id: Optional[int],
    force: bool,
    cache: ResolutionCache,
) -> bool:
    async with session_factory() as session:
        service = ScoringService(
            visitor_repo=VisitorRepository(session),
            activity_repo=ActivityRepository(session),
            scoring_rule_repo=ScoringRuleRepository(session),
            threshold_repo=ThresholdRepository(session),
            resolution_cache=cache,
        )
        try:
            await service.calculate_visitor_score(
                visitor_id, force=force, client_id=client_id
            )
            return True
        except Exception:
            logger.warning(
                "Failed to score visitor %s", visitor_id, exc_info=True
            )
            return False


async def recalculate_scores(
    session_factory: Callable[..., AsyncSession],
    visitor_ids: Iterable[UUID],
    client_id: Optional[int] = None,
    batch_size: Optional[int] = None,
    force: bool = False,
    pause_seconds: Optional[float] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> Dict[str, int]:
    """Recalculate scores for a bounded set of visitors.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession`` (e.g. ``AsyncSessionLocal``).
        visitor_ids: Visitors to score; duplicates are scored once.
        batch_size: Visitors gathered per chunk, capped at
            ``SCORING_BATCH_SIZE_MAX``.  At most ``SCORING_MAX_CONCURRENCY``
            of them (and never more than the pool holds) run at once.
        pause_seconds: Sleep between chunks.
        stop_event: Checked before each visitor; once set, remaining
            visitors are skipped and counted in neither bucket.

    Returns ``{"processed", "failed", "total"}``.  A failing visitor is
    logged and counted, never aborting the batch.
    """
    ids: List[UUID] = list(dict.fromkeys(visitor_ids))
    size = _effective_batch_size(batch_size)
    pause = settings.SCORING_BATCH_PAUSE_SECONDS if pause_seconds is None else pause_seconds
    cache = ResolutionCache()
    slots = asyncio.Semaphore(_concurrency_limit())

    # Seeded once before any visitor runs
    async with session_factory() as session:
        try:
            await ScoringRuleRepository(session).seed_if_empty()
            await session.commit()
            cache.rules_seeded = True
        except Exception:
            logger.warning("Failed to seed default scoring rules", exc_info=True)
            await session.rollback()

    processed = 0
    failed = 0

    logger.info(
        "Batch scoring started: %d visitor(s), batch_size=%d, concurrency=%d, force=%s",
        len(ids),
        size,
        _concurrency_limit(),
        force,
    )

    for start in range(0, len(ids), size):
        if stop_event is not None and stop_event.is_set():
            logger.info("Batch scoring stopped after %d visitor(s)", processed + failed)
            break

        chunk = ids[start:start + size]
        outcomes = await asyncio.gather(
            *(
                _score_one(
                    session_factory, vid, client_id, force, cache, stop_event, slots
                )
                for vid in chunk
            )
        )
        processed += sum(1 for outcome in outcomes if outcome is True)
        failed += sum(1 for outcome in outcomes if outcome is False)

        if pause > 0 and start + size < len(ids):
            await asyncio.sleep(pause)

    logger.info(
        "Batch scoring finished: processed=%d failed=%d total=%d",
        processed,
        failed,
        len(ids),
    )
    return {"processed": processed, "failed": failed, "total": len(ids)}
