import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from reading_room.schemas.generation import (
    ContentLinkOut,
    GenerationPayload,
    GenerationResult,
    VisitorContext,
)
from reading_room.services.prompt_template import PromptTemplate

logger = logging.getLogger(__name__)


def build_visitor_context(prospect: Any, visitor: Optional[Any], room_type: str) -> VisitorContext:
    context = VisitorContext(
        company_name=prospect.company_name,
        contact_name=prospect.contact_name,
        contact_email=prospect.contact_email,
        current_room=room_type,
        lead_score=prospect.lead_score or 0,
        days_in_room=prospect.days_in_room or 0,
        email_sequence_position=prospect.email_sequence_position or 0,
    )
    if visitor is not None:
        context = context.model_copy(
            update={
                "company_size": visitor.estimated_employee_count,
                "company_industry": visitor.industry,
                "company_revenue": visitor.estimated_revenue,
                "job_title": visitor.job_title,
            }
        )
    return context


def build_generation_payload(
    template: Optional[PromptTemplate],
    visitor_context: VisitorContext,
    available_links: List[ContentLinkOut],
) -> GenerationPayload:
    """Assemble what the external generator receives.

    With no template the prompt is empty; links are still offered.
    """
    return GenerationPayload(
        assembled_prompt=template.assemble_prompt() if template is not None else "",
        visitor_context=visitor_context,
        available_links=available_links,
        template_name=template.template_name if template is not None else None,
    )


def parse_generation_result(
    raw: Union[GenerationResult, Mapping[str, Any]],
    available_links: Sequence[ContentLinkOut],
) -> Tuple[GenerationResult, Optional[ContentLinkOut]]:
    """Validate the generator reply and resolve its 1-based link index.

    An index that is missing or out of range falls back to the first
    available link.  Raises ``ValueError`` when the reply is malformed.
    """
    if isinstance(raw, GenerationResult):
        result = raw
    else:
        try:
            result = GenerationResult.model_validate(raw)
        except ValidationError as exc:
            raise ValueError(f"Malformed generation result: {exc}") from exc

    if not available_links:
        return result, None

    index = result.selected_url_index
    if index is None or not 1 <= index <= len(available_links):
        logger.warning(
            "Invalid selected_url_index %s for %d link(s), using first link",
            index,
            len(available_links),
        )
        return result, available_links[0]
    return result, available_links[index - 1]
