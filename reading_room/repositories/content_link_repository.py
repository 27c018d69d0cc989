from typing import List

from sqlalchemy import select

from reading_room.models.content_link import RoomContentLink
from reading_room.repositories.base import BaseRepository


class ContentLinkRepository(BaseRepository):
    """Encapsulates queries against the ``room_content_links`` table."""

    async def list_for_room(self, campaign_id: int, room_type: str) -> List[RoomContentLink]:
        """Return every link (active or not) for a campaign room.

        Filtering and ordering are left to the link selector so the same
        rules apply to rows from any source.
        """
        result = await self._db.execute(
            select(RoomContentLink).where(
                RoomContentLink.campaign_id == campaign_id,
                RoomContentLink.room_type == room_type,
            )
        )
        return list(result.scalars().all())
