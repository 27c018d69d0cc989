from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from reading_room.api.deps import get_outreach_email_service
from reading_room.schemas.generation import GeneratedEmail, GenerationPayload
from reading_room.services.outreach_email_service import OutreachEmailService

router = APIRouter(prefix="/prospects", tags=["Prospects"])


@router.get("/{prospect_id}/generation-payload", response_model=GenerationPayload)
async def get_generation_payload(
    prospect_id: UUID,
    room: Optional[str] = Query(None),
    service: OutreachEmailService = Depends(get_outreach_email_service),
) -> GenerationPayload:
    """Return the prompt, visitor context and unsent links for a prospect.

    ``room`` defaults to the prospect's current room.
    """
    return await service.build_payload(prospect_id, room)


@router.post("/{prospect_id}/generate-email", response_model=GeneratedEmail)
async def generate_email(
    prospect_id: UUID,
    room: Optional[str] = Query(None),
    service: OutreachEmailService = Depends(get_outreach_email_service),
) -> GeneratedEmail:
    return await service.generate_email(prospect_id, room)
