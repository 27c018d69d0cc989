from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, update

from reading_room.models.visitor import Visitor
from reading_room.repositories.base import BaseRepository


class VisitorRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``visitors`` table."""

    async def get_by_id(self, visitor_id: UUID) -> Optional[Visitor]:
        """Return a single visitor by primary key, or ``None``."""
        result = await self._db.execute(
            select(Visitor).where(Visitor.visitor_id == visitor_id)
        )
        return result.scalar_one_or_none()

    async def update_score(
        self,
        visitor_id: UUID,
        lead_score: int,
        current_room: str,
        calculated_at: datetime,
        breakdown: Dict[str, Any],
    ) -> None:
        """Write the cached score fields for a visitor (last write wins)."""
        await self._db.execute(
            update(Visitor)
            .where(Visitor.visitor_id == visitor_id)
            .values(
                lead_score=lead_score,
                current_room=current_room,
                score_calculated_at=calculated_at,
                score_breakdown=breakdown,
            )
        )
