from typing import Dict, Tuple

# Scoring rooms, in funnel order
ROOM_TYPES: Tuple[str, ...] = ("problem", "solution", "offer")

# Used when neither a client nor a global threshold row exists
DEFAULT_THRESHOLDS: Dict[str, int] = {
    "problem_max": 40,
    "solution_max": 60,
    "offer_min": 61,
}

# Values allowed in visitor_activities.type
ACTIVITY_TYPES: Tuple[str, ...] = ("page_visit", "email_open", "email_click")

# Open-ended top brackets reported by the enrichment feed.  A visitor value
# containing any "visitor" marker matches a target containing any "target"
# marker.
REVENUE_TOP_BRACKET_MARKERS: Dict[str, Tuple[str, ...]] = {
    "visitor": ("above", "50m"),
    "target": ("100m+", "50m"),
}
COMPANY_SIZE_TOP_BRACKET_MARKERS: Dict[str, Tuple[str, ...]] = {
    "visitor": ("5001+", "5000+"),
    "target": ("1000+",),
}

# Prompt template parts, in assembly order
PROMPT_COMPONENTS: Tuple[str, ...] = (
    "persona",
    "style_rules",
    "output_spec",
    "personalization_guidelines",
    "constraints",
    "examples",
    "context_instructions",
)

PROMPT_COMPONENT_HEADERS: Dict[str, str] = {
    "persona": "## PERSONA",
    "style_rules": "## STYLE RULES",
    "output_spec": "## OUTPUT SPECIFICATION",
    "personalization_guidelines": "## PERSONALIZATION GUIDELINES",
    "constraints": "## CONSTRAINTS",
    "examples": "## EXAMPLES",
    "context_instructions": "## CONTEXT INSTRUCTIONS",
}

# Links without an explicit order sort after ordered ones
DEFAULT_LINK_ORDER: int = 999
