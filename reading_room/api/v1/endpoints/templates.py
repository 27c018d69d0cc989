from fastapi import APIRouter, Depends

from reading_room.api.deps import get_template_resolver
from reading_room.schemas.templates import TemplatesResponse
from reading_room.services.template_resolver import TemplateResolver

router = APIRouter(prefix="/templates", tags=["Templates"])


@router.get("/campaigns/{campaign_id}/{room_type}", response_model=TemplatesResponse)
async def get_campaign_templates(
    campaign_id: int,
    room_type: str,
    resolver: TemplateResolver = Depends(get_template_resolver),
) -> TemplatesResponse:
    """Return the templates a campaign room resolves to, plus counts."""
    templates = await resolver.get_available_templates(campaign_id, room_type)
    stats = await resolver.get_template_stats(campaign_id, room_type)
    return TemplatesResponse(
        campaign_id=campaign_id,
        room_type=room_type,
        templates=[t.to_schema() for t in templates],
        stats=stats,
    )
