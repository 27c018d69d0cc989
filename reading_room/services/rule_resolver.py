"""Two-level resolution of rule sets and thresholds.

A client override always wins for its room; otherwise the global row is
used.  Thresholds fall back one step further to ``DEFAULT_THRESHOLDS``.
Stored rows that no longer validate are logged and treated as absent so
a bad row never takes a scoring run down.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from reading_room.core.constants import DEFAULT_THRESHOLDS
from reading_room.core.exceptions import InvalidRuleSetError, InvalidThresholdsError
from reading_room.repositories.scoring_rule_repository import ScoringRuleRepository
from reading_room.repositories.threshold_repository import ThresholdRepository
from reading_room.schemas.scoring_rules import RoomRuleSet, validate_rule_set
from reading_room.schemas.thresholds import RoomThresholds, validate_thresholds
from reading_room.services.store_calls import call_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRuleSet:
    rule_set: Optional[RoomRuleSet]
    source: Optional[str]


@dataclass(frozen=True)
class ResolvedThresholds:
    thresholds: RoomThresholds
    source: str


@dataclass
class ResolutionCache:
    """Per-run memo of resolved rule sets and thresholds.

    Shared by every visitor in one batch so each (client, room) pair is
    read from the store once.
    """

    rule_sets: Dict[Tuple[Optional[int], str], ResolvedRuleSet] = field(
        default_factory=dict
    )
    thresholds: Dict[Optional[int], ResolvedThresholds] = field(default_factory=dict)
    rules_seeded: bool = False


class RuleResolver:
    def __init__(
        self,
        scoring_rule_repo: ScoringRuleRepository,
        threshold_repo: ThresholdRepository,
        cache: Optional[ResolutionCache] = None,
    ) -> None:
        self._rule_repo = scoring_rule_repo
        self._threshold_repo = threshold_repo
        self._cache = cache

    @staticmethod
    def _parse_rules(room_type: str, row, scope: str) -> Optional[RoomRuleSet]:
        if row is None:
            return None
        try:
            return validate_rule_set(room_type, row.rules_config)
        except InvalidRuleSetError as exc:
            logger.warning(
                "Ignoring unparsable %s rule set for room %s: %s",
                scope,
                room_type,
                "; ".join(exc.reasons) or exc.detail,
            )
            return None

    async def get_rule_set(
        self, client_id: Optional[int], room_type: str
    ) -> ResolvedRuleSet:
        """Return the client's rule set for *room_type*, else the global one."""
        key = (client_id, room_type)
        if self._cache is not None and key in self._cache.rule_sets:
            return self._cache.rule_sets[key]

        resolved = ResolvedRuleSet(rule_set=None, source=None)
        if client_id is not None:
            row = await call_store(
                lambda: self._rule_repo.get_client(client_id, room_type),
                f"load client {client_id} {room_type} rules",
                reset=self._rule_repo.rollback,
            )
            rule_set = self._parse_rules(room_type, row, f"client {client_id}")
            if rule_set is not None:
                resolved = ResolvedRuleSet(rule_set=rule_set, source="client")

        if resolved.rule_set is None:
            row = await call_store(
                lambda: self._rule_repo.get_global(room_type),
                f"load global {room_type} rules",
                reset=self._rule_repo.rollback,
            )
            rule_set = self._parse_rules(room_type, row, "global")
            if rule_set is not None:
                resolved = ResolvedRuleSet(rule_set=rule_set, source="global")

        if self._cache is not None:
            self._cache.rule_sets[key] = resolved
        return resolved

    async def get_thresholds(self, client_id: Optional[int]) -> ResolvedThresholds:
        """Return client thresholds, else global, else the built-in defaults."""
        if self._cache is not None and client_id in self._cache.thresholds:
            return self._cache.thresholds[client_id]

        resolved: Optional[ResolvedThresholds] = None
        scopes = [(None, "global")]
        if client_id is not None:
            scopes.insert(0, (client_id, "client"))
        for scope_id, source in scopes:
            row = await call_store(
                lambda: self._threshold_repo.get(scope_id),
                f"load {source} thresholds",
                reset=self._threshold_repo.rollback,
            )
            if row is None:
                continue
            try:
                thresholds = validate_thresholds(
                    {
                        "problem_max": row.problem_max,
                        "solution_max": row.solution_max,
                        "offer_min": row.offer_min,
                    }
                )
            except InvalidThresholdsError as exc:
                logger.warning("Ignoring %s thresholds: %s", source, exc.detail)
                continue
            resolved = ResolvedThresholds(thresholds=thresholds, source=source)
            break

        if resolved is None:
            resolved = ResolvedThresholds(
                thresholds=RoomThresholds(**DEFAULT_THRESHOLDS), source="default"
            )

        if self._cache is not None:
            self._cache.thresholds[client_id] = resolved
        return resolved
