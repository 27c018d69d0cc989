import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, func

from reading_room.models.scoring_rule import GlobalScoringRuleSet, ClientScoringRuleSet
from reading_room.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ScoringRuleRepository(BaseRepository):
    """Encapsulates queries against the global and client rule set tables.

    Rule sets are stored as raw JSONB; validation happens in the service
    layer before anything reaches :meth:`upsert_global` or
    :meth:`upsert_client`.
    """

    # -- global ---------------------------------------------------------

    async def get_global(self, room_type: str) -> Optional[GlobalScoringRuleSet]:
        result = await self._db.execute(
            select(GlobalScoringRuleSet).where(
                GlobalScoringRuleSet.room_type == room_type
            )
        )
        return result.scalar_one_or_none()

    async def list_global(self) -> List[GlobalScoringRuleSet]:
        """Return every global rule set ordered by room."""
        result = await self._db.execute(
            select(GlobalScoringRuleSet).order_by(GlobalScoringRuleSet.room_type)
        )
        return list(result.scalars().all())

    async def upsert_global(
        self, room_type: str, rules_config: Dict[str, Any]
    ) -> GlobalScoringRuleSet:
        row = await self.get_global(room_type)
        if row is None:
            row = GlobalScoringRuleSet(room_type=room_type, rules_config=rules_config)
            self._db.add(row)
        else:
            row.rules_config = rules_config
        await self._db.flush()
        return row

    # -- client overrides -----------------------------------------------

    async def get_client(
        self, client_id: int, room_type: str
    ) -> Optional[ClientScoringRuleSet]:
        result = await self._db.execute(
            select(ClientScoringRuleSet).where(
                ClientScoringRuleSet.client_id == client_id,
                ClientScoringRuleSet.room_type == room_type,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_client(
        self, client_id: int, room_type: str, rules_config: Dict[str, Any]
    ) -> ClientScoringRuleSet:
        row = await self.get_client(client_id, room_type)
        if row is None:
            row = ClientScoringRuleSet(
                client_id=client_id, room_type=room_type, rules_config=rules_config
            )
            self._db.add(row)
        else:
            row.rules_config = rules_config
        await self._db.flush()
        return row

    async def delete_client(self, client_id: int, room_type: Optional[str] = None) -> int:
        """Remove a client's override for one room, or for all rooms.

        Returns the number of rows deleted.
        """
        stmt = delete(ClientScoringRuleSet).where(
            ClientScoringRuleSet.client_id == client_id
        )
        if room_type is not None:
            stmt = stmt.where(ClientScoringRuleSet.room_type == room_type)
        result = await self._db.execute(stmt)
        return result.rowcount or 0

    # -- seeding ----------------------------------------------------------

    async def seed_if_empty(self) -> None:
        """Insert the built-in global rule sets when the table is empty.

        Idempotent: a table that already holds any rule set is left alone.
        The canonical definitions live in
        ``reading_room.core.default_scoring_rules.DEFAULT_SCORING_RULES``.
        """
        from reading_room.core.default_scoring_rules import DEFAULT_SCORING_RULES

        count_result = await self._db.execute(
            select(func.count()).select_from(GlobalScoringRuleSet)
        )
        if count_result.scalar():
            return

        logger.info("global_scoring_rules table is empty, seeding defaults")
        for room_type, rules_config in DEFAULT_SCORING_RULES.items():
            self._db.add(
                GlobalScoringRuleSet(room_type=room_type, rules_config=rules_config)
            )
        await self._db.flush()
        logger.info("Seeded %d default rule sets", len(DEFAULT_SCORING_RULES))
