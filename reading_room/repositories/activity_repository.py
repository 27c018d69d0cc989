from typing import List
from uuid import UUID

from sqlalchemy import select

from reading_room.models.visitor_activity import VisitorActivity
from reading_room.repositories.base import BaseRepository


class ActivityRepository(BaseRepository):
    """Read-only access to the ``visitor_activities`` log."""

    async def list_for_visitor(self, visitor_id: UUID) -> List[VisitorActivity]:
        """Return every activity for a visitor, oldest first."""
        result = await self._db.execute(
            select(VisitorActivity)
            .where(VisitorActivity.visitor_id == visitor_id)
            .order_by(VisitorActivity.occurred_at.asc())
        )
        return list(result.scalars().all())
