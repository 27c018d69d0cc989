from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


class PromptTemplateOut(BaseModel):
    template_id: Optional[UUID] = None
    template_name: str
    room_type: str
    is_global: bool
    template_order: int
    prompt_template: Dict[str, str]


class TemplateStats(BaseModel):
    campaign_count: int
    global_count: int
    total_available: int
    using_campaign: bool
    using_global: bool


class TemplatesResponse(BaseModel):
    campaign_id: int
    room_type: str
    templates: List[PromptTemplateOut]
    stats: TemplateStats
