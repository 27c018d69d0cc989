"""Payload sent to the external text generator and what comes back."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ContentLinkOut(BaseModel):
    link_id: Optional[UUID] = None
    title: str
    url: str
    summary: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    order: Optional[int] = None


class VisitorContext(BaseModel):
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    current_room: str
    lead_score: int = 0
    days_in_room: int = 0
    email_sequence_position: int = 0
    company_size: Optional[str] = None
    company_industry: Optional[str] = None
    company_revenue: Optional[str] = None
    job_title: Optional[str] = None


class GenerationPayload(BaseModel):
    assembled_prompt: str
    visitor_context: VisitorContext
    available_links: List[ContentLinkOut] = Field(default_factory=list)
    template_name: Optional[str] = None


class GenerationResult(BaseModel):
    """Raw generator reply; ``selected_url_index`` is 1-based."""

    subject: str = ""
    body: str = ""
    selected_url_index: Optional[int] = None


class GeneratedEmail(BaseModel):
    prospect_id: UUID
    room_type: str
    subject: Optional[str] = None
    body: Optional[str] = None
    selected_link: Optional[ContentLinkOut] = None
    template_name: Optional[str] = None
    fallback: bool = False
