from typing import Optional
from uuid import UUID

from sqlalchemy import select

from reading_room.models.prospect import Prospect
from reading_room.models.visitor import Visitor
from reading_room.repositories.base import BaseRepository


class ProspectRepository(BaseRepository):
    """Encapsulates queries against the ``prospects`` table."""

    async def get_by_id(self, prospect_id: UUID) -> Optional[Prospect]:
        result = await self._db.execute(
            select(Prospect).where(Prospect.prospect_id == prospect_id)
        )
        return result.scalar_one_or_none()

    async def get_visitor(self, prospect: Prospect) -> Optional[Visitor]:
        """Return the visitor a prospect was enrolled from."""
        result = await self._db.execute(
            select(Visitor).where(Visitor.visitor_id == prospect.visitor_id)
        )
        return result.scalar_one_or_none()
