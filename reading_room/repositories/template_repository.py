from typing import List

from sqlalchemy import select

from reading_room.models.email_template import EmailTemplate
from reading_room.repositories.base import BaseRepository


class TemplateRepository(BaseRepository):
    """Encapsulates queries against the ``email_templates`` table."""

    async def list_campaign_templates(
        self, campaign_id: int, room_type: str
    ) -> List[EmailTemplate]:
        """Return a campaign's own (non-global) templates for a room, in order."""
        result = await self._db.execute(
            select(EmailTemplate)
            .where(
                EmailTemplate.campaign_id == campaign_id,
                EmailTemplate.room_type == room_type,
                EmailTemplate.is_global.is_(False),
            )
            .order_by(EmailTemplate.template_order, EmailTemplate.template_id)
        )
        return list(result.scalars().all())

    async def list_global_templates(self, room_type: str) -> List[EmailTemplate]:
        """Return the global templates for a room, in order."""
        result = await self._db.execute(
            select(EmailTemplate)
            .where(
                EmailTemplate.room_type == room_type,
                EmailTemplate.is_global.is_(True),
            )
            .order_by(EmailTemplate.template_order, EmailTemplate.template_id)
        )
        return list(result.scalars().all())
