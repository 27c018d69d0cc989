import logging
from typing import Iterable, List

from reading_room.core.constants import ROOM_TYPES
from reading_room.repositories.template_repository import TemplateRepository
from reading_room.schemas.templates import TemplateStats
from reading_room.services.prompt_template import PromptTemplate

logger = logging.getLogger(__name__)


class TemplateResolver:
    """Pick the prompt templates that apply to a campaign room.

    Campaign templates shadow global ones completely: if a campaign has
    any valid template for the room, only those are returned.  The two
    sets are never mixed.
    """

    def __init__(self, template_repo: TemplateRepository) -> None:
        self._repo = template_repo

    @staticmethod
    def _valid(rows: Iterable, scope: str) -> List[PromptTemplate]:
        templates = []
        for row in rows:
            template = PromptTemplate.from_model(row)
            if not template.validate():
                logger.warning(
                    "Skipping invalid %s template %s: %s",
                    scope,
                    template.template_id,
                    "; ".join(template.errors),
                )
                continue
            templates.append(template)
        return templates

    async def get_available_templates(
        self, campaign_id: int, room_type: str
    ) -> List[PromptTemplate]:
        """Return campaign templates for the room, else global ones, else ``[]``."""
        if room_type not in ROOM_TYPES:
            logger.warning("Invalid room type for template lookup: %s", room_type)
            return []

        campaign = self._valid(
            await self._repo.list_campaign_templates(campaign_id, room_type),
            "campaign",
        )
        if campaign:
            logger.debug(
                "Using %d campaign template(s) for campaign %s room %s",
                len(campaign),
                campaign_id,
                room_type,
            )
            return campaign

        global_ = self._valid(
            await self._repo.list_global_templates(room_type), "global"
        )
        if global_:
            logger.debug(
                "Using %d global template(s) for room %s", len(global_), room_type
            )
        else:
            logger.info(
                "No templates for campaign %s room %s", campaign_id, room_type
            )
        return global_

    async def get_template_stats(self, campaign_id: int, room_type: str) -> TemplateStats:
        if room_type not in ROOM_TYPES:
            return TemplateStats(
                campaign_count=0,
                global_count=0,
                total_available=0,
                using_campaign=False,
                using_global=False,
            )

        campaign = self._valid(
            await self._repo.list_campaign_templates(campaign_id, room_type),
            "campaign",
        )
        global_ = self._valid(
            await self._repo.list_global_templates(room_type), "global"
        )
        using_campaign = bool(campaign)
        return TemplateStats(
            campaign_count=len(campaign),
            global_count=len(global_),
            total_available=len(campaign) if using_campaign else len(global_),
            using_campaign=using_campaign,
            using_global=not using_campaign and bool(global_),
        )
