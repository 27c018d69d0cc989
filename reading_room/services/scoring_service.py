import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import ValidationError

from reading_room.core.config import settings
from reading_room.core.constants import ROOM_TYPES
from reading_room.core.exceptions import VisitorNotFoundError
from reading_room.repositories.activity_repository import ActivityRepository
from reading_room.repositories.scoring_rule_repository import ScoringRuleRepository
from reading_room.repositories.threshold_repository import ThresholdRepository
from reading_room.repositories.visitor_repository import VisitorRepository
from reading_room.schemas.score import ScoreResult
from reading_room.schemas.scoring_rules import GateRule
from reading_room.services.room_classifier import classify_room
from reading_room.services.rule_resolver import ResolutionCache, RuleResolver
from reading_room.services.score_calculator import VisitorSignals, score_room
from reading_room.services.store_calls import call_store

logger = logging.getLogger(__name__)


class ScoringService:
    """Calculate, classify and cache a visitor's lead score.

    For each room the client's rule set is used when one exists, else the
    global one.  When the Problem ``minimum_threshold`` gate is enabled
    and the Problem score falls short, every room score is zeroed and the
    visitor lands in room ``none``.  Otherwise the three room scores are
    summed, capped at ``MAX_LEAD_SCORE`` and classified against the
    resolved thresholds.

    Results are written back onto the visitor row and reused for
    ``SCORE_FRESHNESS_HOURS`` unless ``force=True``.
    """

    def __init__(
        self,
        visitor_repo: VisitorRepository,
        activity_repo: ActivityRepository,
        scoring_rule_repo: ScoringRuleRepository,
        threshold_repo: ThresholdRepository,
        resolution_cache: Optional[ResolutionCache] = None,
    ) -> None:
        self._visitor_repo = visitor_repo
        self._activity_repo = activity_repo
        self._rule_repo = scoring_rule_repo
        self._cache = resolution_cache or ResolutionCache()
        self._resolver = RuleResolver(scoring_rule_repo, threshold_repo, self._cache)

    async def _ensure_rules_seeded(self) -> None:
        """Seed the global rule sets once per service (or batch run)."""
        if self._cache.rules_seeded:
            return
        try:
            await self._rule_repo.seed_if_empty()
            await self._rule_repo.commit()
            self._cache.rules_seeded = True
        except Exception:
            logger.warning("Failed to seed default scoring rules", exc_info=True)
            await self._rule_repo.rollback()

    @staticmethod
    def _is_fresh(visitor: Any, now: datetime) -> bool:
        calculated_at = visitor.score_calculated_at
        if calculated_at is None or not isinstance(visitor.score_breakdown, dict):
            return False
        if calculated_at.tzinfo is None:
            calculated_at = calculated_at.replace(tzinfo=timezone.utc)
        return now - calculated_at < timedelta(hours=settings.SCORE_FRESHNESS_HOURS)

    @staticmethod
    def _from_cache(visitor: Any) -> Optional[ScoreResult]:
        stored: Dict[str, Any] = visitor.score_breakdown
        try:
            return ScoreResult(
                visitor_id=visitor.visitor_id,
                per_room_scores=stored["per_room_scores"],
                total_score=visitor.lead_score,
                assigned_room=visitor.current_room,
                gated=stored.get("gated", False),
                calculated_at=visitor.score_calculated_at,
                breakdown=stored.get("breakdown", {}),
                rule_sources=stored.get("rule_sources", {}),
                thresholds=stored.get("thresholds", {}),
                threshold_source=stored.get("threshold_source"),
                cached=True,
            )
        except (KeyError, TypeError, ValidationError):
            logger.warning(
                "Cached score for visitor %s is malformed, recalculating",
                visitor.visitor_id,
            )
            return None

    async def calculate_visitor_score(
        self,
        visitor_id: UUID,
        force: bool = False,
        client_id: Optional[int] = None,
    ) -> ScoreResult:
        """Return the visitor's score, recalculating when stale or forced.

        *client_id* overrides the visitor's own tenant for rule and
        threshold resolution.
        """
        visitor = await call_store(
            lambda: self._visitor_repo.get_by_id(visitor_id),
            f"load visitor {visitor_id}",
            reset=self._visitor_repo.rollback,
        )
        if visitor is None:
            raise VisitorNotFoundError(f"Visitor {visitor_id} not found")

        now = datetime.now(timezone.utc)
        if not force and self._is_fresh(visitor, now):
            cached = self._from_cache(visitor)
            if cached is not None:
                return cached

        tenant_id = client_id if client_id is not None else visitor.client_id
        # A rollback expires the visitor row, so copy what scoring reads first
        profile = VisitorSignals.from_records(visitor, ())

        await self._ensure_rules_seeded()

        activities = await call_store(
            lambda: self._activity_repo.list_for_visitor(visitor_id),
            f"load activity for visitor {visitor_id}",
            reset=self._activity_repo.rollback,
        )
        signals = profile.with_activities(activities)

        per_room: Dict[str, int] = {}
        breakdown: Dict[str, Dict[str, int]] = {}
        rule_sources: Dict[str, Optional[str]] = {}
        problem_rules = None
        for room_type in ROOM_TYPES:
            resolved = await self._resolver.get_rule_set(tenant_id, room_type)
            room_score = score_room(signals, resolved.rule_set)
            per_room[room_type] = room_score.score
            breakdown[room_type] = room_score.breakdown
            rule_sources[room_type] = resolved.source
            if room_type == "problem":
                problem_rules = resolved.rule_set

        resolved_thresholds = await self._resolver.get_thresholds(tenant_id)

        gate: Optional[GateRule] = (
            problem_rules.minimum_threshold if problem_rules is not None else None
        )
        gated = bool(
            gate is not None
            and gate.enabled
            and per_room["problem"] < gate.required_score
        )

        if gated:
            per_room = {room_type: 0 for room_type in ROOM_TYPES}
            total = 0
            room = "none"
        else:
            total = min(sum(per_room.values()), settings.MAX_LEAD_SCORE)
            room = classify_room(total, resolved_thresholds.thresholds)

        result = ScoreResult(
            visitor_id=visitor_id,
            per_room_scores=per_room,
            total_score=total,
            assigned_room=room,
            gated=gated,
            calculated_at=now,
            breakdown=breakdown,
            rule_sources=rule_sources,
            thresholds=resolved_thresholds.thresholds.model_dump(),
            threshold_source=resolved_thresholds.source,
        )
        await self._persist(result)
        return result

    async def _persist(self, result: ScoreResult) -> None:
        stored = result.model_dump(
            mode="json",
            include={
                "per_room_scores",
                "gated",
                "breakdown",
                "rule_sources",
                "thresholds",
                "threshold_source",
            },
        )
        await call_store(
            lambda: self._visitor_repo.update_score(
                visitor_id=result.visitor_id,
                lead_score=result.total_score,
                current_room=result.assigned_room,
                calculated_at=result.calculated_at,
                breakdown=stored,
            ),
            f"save score for visitor {result.visitor_id}",
            reset=self._visitor_repo.rollback,
        )
        await self._visitor_repo.commit()
