import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Tuple
from uuid import UUID

from reading_room.core.config import settings
from reading_room.core.constants import ROOM_TYPES
from reading_room.core.exceptions import InvalidRoomTypeError, ProspectNotFoundError
from reading_room.repositories.content_link_repository import ContentLinkRepository
from reading_room.repositories.prospect_repository import ProspectRepository
from reading_room.schemas.generation import (
    ContentLinkOut,
    GeneratedEmail,
    GenerationPayload,
)
from reading_room.services.content_links import link_from_model, select_available_links
from reading_room.services.generation_payload import (
    build_generation_payload,
    build_visitor_context,
    parse_generation_result,
)
from reading_room.services.generation_rate_limiter import GenerationRateLimiter
from reading_room.services.prompt_template import PromptTemplate
from reading_room.services.template_resolver import TemplateResolver

logger = logging.getLogger(__name__)

# Opaque text generator: payload in, {subject, body, selected_url_index} out
TextGenerator = Callable[[GenerationPayload], Awaitable[Mapping[str, Any]]]


class OutreachEmailService:
    """Prepare generation payloads and produce outreach emails for prospects.

    The text generator is injected; when it is missing, disabled, has no
    template to work from, or fails, a template-free fallback email built
    around the first available link is returned instead.
    """

    def __init__(
        self,
        prospect_repo: ProspectRepository,
        content_link_repo: ContentLinkRepository,
        template_resolver: TemplateResolver,
        rate_limiter: GenerationRateLimiter,
        generator: Optional[TextGenerator] = None,
        enabled: Optional[bool] = None,
    ) -> None:
        self._prospect_repo = prospect_repo
        self._link_repo = content_link_repo
        self._resolver = template_resolver
        self._rate_limiter = rate_limiter
        self._generator = generator
        self._enabled = settings.AI_GENERATION_ENABLED if enabled is None else enabled

    async def _load(self, prospect_id: UUID, room_type: Optional[str]):
        prospect = await self._prospect_repo.get_by_id(prospect_id)
        if prospect is None:
            raise ProspectNotFoundError(f"Prospect {prospect_id} not found")

        room = room_type or prospect.current_room
        if room not in ROOM_TYPES:
            raise InvalidRoomTypeError(f"Invalid room type: {room}")

        rows = await self._link_repo.list_for_room(prospect.campaign_id, room)
        links = select_available_links(
            (link_from_model(row) for row in rows), prospect.urls_sent or []
        )
        return prospect, room, links

    async def _prepare(
        self, prospect_id: UUID, room_type: Optional[str]
    ) -> Tuple[Any, str, Optional[PromptTemplate], GenerationPayload]:
        prospect, room, links = await self._load(prospect_id, room_type)
        templates = await self._resolver.get_available_templates(
            prospect.campaign_id, room
        )
        # First template wins
        template = templates[0] if templates else None
        visitor = await self._prospect_repo.get_visitor(prospect)
        payload = build_generation_payload(
            template, build_visitor_context(prospect, visitor, room), links
        )
        return prospect, room, template, payload

    async def build_payload(
        self, prospect_id: UUID, room_type: Optional[str] = None
    ) -> GenerationPayload:
        """Return the payload the generator would receive for this prospect."""
        _, _, _, payload = await self._prepare(prospect_id, room_type)
        return payload

    async def generate_email(
        self, prospect_id: UUID, room_type: Optional[str] = None
    ) -> GeneratedEmail:
        if not self._enabled or self._generator is None:
            logger.info("AI generation disabled, using fallback email")
            prospect, room, links = await self._load(prospect_id, room_type)
            return self._fallback(prospect, room, links)

        await self._rate_limiter.check_limit()

        prospect, room, template, payload = await self._prepare(prospect_id, room_type)
        if template is None:
            logger.info(
                "No template for campaign %s room %s, using fallback email",
                prospect.campaign_id,
                room,
            )
            return self._fallback(prospect, room, payload.available_links)

        try:
            raw = await self._generator(payload)
            result, selected = parse_generation_result(raw, payload.available_links)
        except Exception:
            logger.warning(
                "Generation failed for prospect %s, using fallback email",
                prospect_id,
                exc_info=True,
            )
            return self._fallback(
                prospect, room, payload.available_links, template.template_name
            )

        await self._rate_limiter.increment()
        return GeneratedEmail(
            prospect_id=prospect_id,
            room_type=room,
            subject=result.subject,
            body=result.body,
            selected_link=selected,
            template_name=template.template_name,
        )

    @staticmethod
    def _fallback(
        prospect: Any,
        room: str,
        links: list,
        template_name: Optional[str] = None,
    ) -> GeneratedEmail:
        selected: Optional[ContentLinkOut] = links[0] if links else None
        return GeneratedEmail(
            prospect_id=prospect.prospect_id,
            room_type=room,
            selected_link=selected,
            template_name=template_name,
            fallback=True,
        )
