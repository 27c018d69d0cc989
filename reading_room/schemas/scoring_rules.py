"""Pydantic models for stored scoring rule sets.

A rule set is a fixed map of rule name to rule for one room.  The variant
of each rule is implied by its name (``revenue`` is always a value-match,
``page_visit`` always a capped accumulator, ...), so every room gets its
own model with one typed field per required rule.  Unknown rule names are
rejected and missing ones reported, which gives callers the full list of
problems in a single ``InvalidRuleSetError``.

Legacy field names written by older admin screens are accepted on input
and normalised to the canonical names on output.
"""

from typing import Any, Dict, Iterator, List, Literal, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from reading_room.core.constants import ROOM_TYPES
from reading_room.core.exceptions import InvalidRoomTypeError, InvalidRuleSetError


# ---------------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------------


def _as_string_list(value: Any) -> Any:
    """Coerce ``None`` to an empty list and a lone string to a one-item list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


class Rule(BaseModel):
    """Fields shared by every rule variant.  Undeclared keys are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool


class ValueMatchRule(Rule):
    """Award ``points`` when a visitor attribute is one of ``values``."""

    points: int = Field(ge=0)
    values: List[str]

    @field_validator("values", mode="before")
    @classmethod
    def _coerce_values(cls, value: Any) -> Any:
        return _as_string_list(value)


class IndustryMatchRule(ValueMatchRule):
    """Value-match over ``Category`` or ``Category|Subcategory`` codes."""


class ThresholdCountRule(Rule):
    """Award ``points`` once an observed count reaches ``minimum_count``."""

    points: int = Field(ge=0)
    minimum_count: int = Field(
        ge=0,
        validation_alias=AliasChoices(
            "minimum_count", "minimum_visits", "minimum_clicks"
        ),
    )


class CappedAccumulatorRule(Rule):
    """``count * points_per_unit``, capped at ``max_points`` when set."""

    points_per_unit: int = Field(
        ge=0,
        validation_alias=AliasChoices("points_per_unit", "points_per_visit", "points"),
    )
    max_points: Optional[int] = Field(None, ge=0)


class PatternDetectRule(Rule):
    """Award ``points`` when any activity record matches the detector.

    ``detection_method`` is kept as a free string: methods the calculator
    does not know survive a round trip through the store but never fire.
    Rule sets saved before the field existed default to URL matching.
    """

    points: int = Field(ge=0)
    detection_method: str = "url_pattern"
    patterns: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("patterns", "key_pages", "page_urls"),
    )
    utm_content: str = ""
    utm_sources: List[str] = Field(default_factory=list)

    @field_validator("patterns", "utm_sources", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> Any:
        return _as_string_list(value)

    @field_validator("utm_content", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class RoleMatchRule(Rule):
    points: int = Field(ge=0)
    target_roles: Dict[str, List[str]]
    match_type: Literal["contains", "exact"] = "contains"


class GateRule(Rule):
    """Post-hoc gate on the Problem aggregate; never adds points."""

    required_score: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Rule sets
# ---------------------------------------------------------------------------


class RoomRuleSet(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    def rules(self) -> Iterator[Tuple[str, Rule]]:
        """Yield ``(rule_name, rule)`` pairs in declaration order."""
        for name in type(self).model_fields:
            yield name, getattr(self, name)

    def to_config(self) -> Dict[str, Any]:
        """Return the canonical JSON-ready form stored in ``rules_config``."""
        return self.model_dump(mode="json")


class ProblemRuleSet(RoomRuleSet):
    revenue: ValueMatchRule
    company_size: ValueMatchRule
    industry_alignment: IndustryMatchRule
    target_states: ValueMatchRule
    visited_target_pages: CappedAccumulatorRule
    multiple_visits: ThresholdCountRule
    role_match: RoleMatchRule
    minimum_threshold: GateRule


class SolutionRuleSet(RoomRuleSet):
    email_open: CappedAccumulatorRule
    email_click: CappedAccumulatorRule
    email_multiple_click: ThresholdCountRule
    page_visit: CappedAccumulatorRule
    key_page_visit: PatternDetectRule
    ad_engagement: PatternDetectRule


class OfferRuleSet(RoomRuleSet):
    demo_request: PatternDetectRule
    contact_form: PatternDetectRule
    pricing_page: PatternDetectRule
    pricing_question: PatternDetectRule
    partner_referral: PatternDetectRule
    webinar_attendance: PatternDetectRule


RULE_SET_MODELS = {
    "problem": ProblemRuleSet,
    "solution": SolutionRuleSet,
    "offer": OfferRuleSet,
}


def _describe_error(error: Dict[str, Any]) -> str:
    loc = ".".join(str(part) for part in error["loc"])
    if error["type"] == "missing" and len(error["loc"]) == 1:
        return f"Missing required rule: {loc}"
    if error["type"] == "extra_forbidden" and len(error["loc"]) == 1:
        return f"Unknown rule: {loc}"
    return f"{loc}: {error['msg']}"


def validate_rule_set(room_type: str, data: Any) -> RoomRuleSet:
    """Validate *data* as the rule set for *room_type*.

    Raises ``InvalidRoomTypeError`` for an unknown room and
    ``InvalidRuleSetError`` (with one reason per failed check) for
    anything else.
    """
    if room_type not in ROOM_TYPES:
        raise InvalidRoomTypeError(f"Invalid room type: {room_type}")
    if not isinstance(data, dict):
        raise InvalidRuleSetError(
            f"Invalid {room_type} scoring rules",
            reasons=["Rule set must be a JSON object"],
        )

    model = RULE_SET_MODELS[room_type]
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        reasons = [_describe_error(err) for err in exc.errors()]
        raise InvalidRuleSetError(
            f"Invalid {room_type} scoring rules", reasons=reasons
        ) from exc


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RuleSetOut(BaseModel):
    room_type: str
    source: Literal["client", "global"]
    rules_config: Dict[str, Any]


class EffectiveRulesOut(BaseModel):
    """Rules a client is actually scored with, one entry per room."""

    client_id: int
    rooms: Dict[str, Optional[RuleSetOut]]
