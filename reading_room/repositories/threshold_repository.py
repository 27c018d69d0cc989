from typing import Optional

from sqlalchemy import select, delete

from reading_room.models.room_threshold import RoomThreshold
from reading_room.repositories.base import BaseRepository


class ThresholdRepository(BaseRepository):
    """Queries against ``room_thresholds``; ``client_id=None`` is the global row."""

    async def get(self, client_id: Optional[int] = None) -> Optional[RoomThreshold]:
        if client_id is None:
            condition = RoomThreshold.client_id.is_(None)
        else:
            condition = RoomThreshold.client_id == client_id
        result = await self._db.execute(select(RoomThreshold).where(condition))
        return result.scalar_one_or_none()

    async def upsert(
        self,
        client_id: Optional[int],
        problem_max: int,
        solution_max: int,
        offer_min: int,
    ) -> RoomThreshold:
        row = await self.get(client_id)
        if row is None:
            row = RoomThreshold(client_id=client_id)
            self._db.add(row)
        row.problem_max = problem_max
        row.solution_max = solution_max
        row.offer_min = offer_min
        await self._db.flush()
        return row

    async def delete_client(self, client_id: int) -> int:
        result = await self._db.execute(
            delete(RoomThreshold).where(RoomThreshold.client_id == client_id)
        )
        return result.rowcount or 0
