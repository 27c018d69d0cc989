import logging
from typing import Any, Dict, Optional

from reading_room.core.constants import ROOM_TYPES
from reading_room.core.exceptions import InvalidRoomTypeError, ScoringRulesNotFoundError
from reading_room.repositories.scoring_rule_repository import ScoringRuleRepository
from reading_room.repositories.threshold_repository import ThresholdRepository
from reading_room.schemas.scoring_rules import (
    EffectiveRulesOut,
    RuleSetOut,
    validate_rule_set,
)
from reading_room.schemas.thresholds import ThresholdsOut, validate_thresholds
from reading_room.services.rule_resolver import RuleResolver

logger = logging.getLogger(__name__)


def _check_room(room_type: str) -> None:
    if room_type not in ROOM_TYPES:
        raise InvalidRoomTypeError(f"Invalid room type: {room_type}")


class ScoringConfigService:
    """Read and write rule sets and thresholds.

    Every write is validated first: rule sets must carry exactly the
    required rule names for their room, thresholds must be positive and
    ordered.  Stored rule sets are always the canonical form, so legacy
    field names never reach the database through this service.
    """

    def __init__(
        self,
        scoring_rule_repo: ScoringRuleRepository,
        threshold_repo: ThresholdRepository,
    ) -> None:
        self._rule_repo = scoring_rule_repo
        self._threshold_repo = threshold_repo
        self._resolver = RuleResolver(scoring_rule_repo, threshold_repo)

    # -- rule sets --------------------------------------------------------

    async def list_global_rules(self) -> Dict[str, RuleSetOut]:
        await self._rule_repo.seed_if_empty()
        await self._rule_repo.commit()
        rows = await self._rule_repo.list_global()
        return {
            row.room_type: RuleSetOut(
                room_type=row.room_type, source="global", rules_config=row.rules_config
            )
            for row in rows
        }

    async def get_global_rules(self, room_type: str) -> RuleSetOut:
        _check_room(room_type)
        row = await self._rule_repo.get_global(room_type)
        if row is None:
            raise ScoringRulesNotFoundError(f"No global rules for room {room_type}")
        return RuleSetOut(
            room_type=room_type, source="global", rules_config=row.rules_config
        )

    async def save_global_rules(self, room_type: str, data: Any) -> RuleSetOut:
        rule_set = validate_rule_set(room_type, data)
        config = rule_set.to_config()
        await self._rule_repo.upsert_global(room_type, config)
        await self._rule_repo.commit()
        logger.info("Saved global %s rules", room_type)
        return RuleSetOut(room_type=room_type, source="global", rules_config=config)

    async def get_client_rules(self, client_id: int) -> EffectiveRulesOut:
        """Return the rules each room would be scored with for *client_id*."""
        rooms: Dict[str, Optional[RuleSetOut]] = {}
        for room_type in ROOM_TYPES:
            resolved = await self._resolver.get_rule_set(client_id, room_type)
            rooms[room_type] = (
                RuleSetOut(
                    room_type=room_type,
                    source=resolved.source,
                    rules_config=resolved.rule_set.to_config(),
                )
                if resolved.rule_set is not None
                else None
            )
        return EffectiveRulesOut(client_id=client_id, rooms=rooms)

    async def save_client_rules(
        self, client_id: int, room_type: str, data: Any
    ) -> RuleSetOut:
        rule_set = validate_rule_set(room_type, data)
        config = rule_set.to_config()
        await self._rule_repo.upsert_client(client_id, room_type, config)
        await self._rule_repo.commit()
        logger.info("Saved client %s %s rules", client_id, room_type)
        return RuleSetOut(room_type=room_type, source="client", rules_config=config)

    async def reset_client_rules(
        self, client_id: int, room_type: Optional[str] = None
    ) -> int:
        """Drop client overrides so the global rules apply again."""
        if room_type is not None:
            _check_room(room_type)
        deleted = await self._rule_repo.delete_client(client_id, room_type)
        await self._rule_repo.commit()
        logger.info(
            "Reset %d %s rule set(s) for client %s",
            deleted,
            room_type or "all",
            client_id,
        )
        return deleted

    # -- thresholds -------------------------------------------------------

    async def get_thresholds(self, client_id: Optional[int] = None) -> ThresholdsOut:
        resolved = await self._resolver.get_thresholds(client_id)
        return ThresholdsOut(
            **resolved.thresholds.model_dump(), source=resolved.source
        )

    async def save_thresholds(
        self, data: Any, client_id: Optional[int] = None
    ) -> ThresholdsOut:
        thresholds = validate_thresholds(data)
        await self._threshold_repo.upsert(
            client_id,
            problem_max=thresholds.problem_max,
            solution_max=thresholds.solution_max,
            offer_min=thresholds.offer_min,
        )
        await self._threshold_repo.commit()
        return ThresholdsOut(
            **thresholds.model_dump(),
            source="global" if client_id is None else "client",
        )

    async def reset_client_thresholds(self, client_id: int) -> int:
        deleted = await self._threshold_repo.delete_client(client_id)
        await self._threshold_repo.commit()
        return deleted
