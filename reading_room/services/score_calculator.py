"""Rule evaluation for a single room.

``score_room`` is pure: it reads a :class:`VisitorSignals` snapshot and a
validated rule set and returns the room total with a per-rule breakdown.
Nothing here touches the database; the orchestrator builds the signals
from the visitor row and its activity log.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from reading_room.core.constants import (
    COMPANY_SIZE_TOP_BRACKET_MARKERS,
    REVENUE_TOP_BRACKET_MARKERS,
)
from reading_room.schemas.score import RoomScore
from reading_room.schemas.scoring_rules import (
    CappedAccumulatorRule,
    GateRule,
    IndustryMatchRule,
    PatternDetectRule,
    RoleMatchRule,
    RoomRuleSet,
    Rule,
    ThresholdCountRule,
    ValueMatchRule,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityRecord:
    type: str
    url: Optional[str] = None
    referrer: Optional[str] = None
    utm_source: Optional[str] = None
    utm_content: Optional[str] = None


@dataclass(frozen=True)
class VisitorSignals:
    """Everything the rule evaluators read about one visitor."""

    revenue: Optional[str] = None
    company_size: Optional[str] = None
    industry: Optional[str] = None
    state: Optional[str] = None
    job_title: Optional[str] = None
    activities: Tuple[ActivityRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_records(cls, visitor: Any, activities: Iterable[Any]) -> "VisitorSignals":
        """Build signals from a visitor row and its activity rows."""
        return cls(
            revenue=getattr(visitor, "estimated_revenue", None),
            company_size=getattr(visitor, "estimated_employee_count", None),
            industry=getattr(visitor, "industry", None),
            state=getattr(visitor, "state", None),
            job_title=getattr(visitor, "job_title", None),
        ).with_activities(activities)

    def with_activities(self, activities: Iterable[Any]) -> "VisitorSignals":
        """Return a copy holding *activities* in place of the current log."""
        return replace(
            self,
            activities=tuple(
                ActivityRecord(
                    type=a.type,
                    url=getattr(a, "url", None),
                    referrer=getattr(a, "referrer", None),
                    utm_source=getattr(a, "utm_source", None),
                    utm_content=getattr(a, "utm_content", None),
                )
                for a in activities
            ),
        )

    def count(self, activity_type: str) -> int:
        return sum(1 for a in self.activities if a.type == activity_type)

    @property
    def page_urls(self) -> List[str]:
        return [a.url for a in self.activities if a.type == "page_visit" and a.url]

    @property
    def page_visit_count(self) -> int:
        return self.count("page_visit")

    @property
    def distinct_page_count(self) -> int:
        return len(set(self.page_urls))

    @property
    def email_open_count(self) -> int:
        return self.count("email_open")

    @property
    def email_click_count(self) -> int:
        return self.count("email_click")


# Which visitor attribute each value-match rule reads
_VALUE_SIGNALS: Dict[str, str] = {
    "revenue": "revenue",
    "company_size": "company_size",
    "industry_alignment": "industry",
    "target_states": "state",
}

# Open-ended bracket equivalences per value-match rule
_TOP_BRACKETS: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "revenue": REVENUE_TOP_BRACKET_MARKERS,
    "company_size": COMPANY_SIZE_TOP_BRACKET_MARKERS,
}

# Which count each threshold / accumulator rule reads
_COUNT_SIGNALS: Dict[str, str] = {
    "visited_target_pages": "distinct_page_count",
    "multiple_visits": "page_visit_count",
    "email_open": "email_open_count",
    "email_click": "email_click_count",
    "email_multiple_click": "email_click_count",
    "page_visit": "page_visit_count",
}


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().lower()


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


def matches_value(
    actual: Optional[str],
    targets: Sequence[str],
    top_brackets: Optional[Dict[str, Tuple[str, ...]]] = None,
) -> bool:
    """Trimmed, case-insensitive membership with optional top-bracket equivalence."""
    visitor_value = _norm(actual)
    if not visitor_value or not targets:
        return False

    wanted = {_norm(t) for t in targets}
    if visitor_value in wanted:
        return True

    if top_brackets:
        if any(m in visitor_value for m in top_brackets["visitor"]):
            return any(
                m in target for target in wanted for m in top_brackets["target"]
            )
    return False


def _split_industry(code: str) -> Tuple[str, str]:
    category, _, subcategory = code.partition("|")
    return category.strip(), subcategory.strip()


def matches_industry(actual: Optional[str], targets: Sequence[str]) -> bool:
    """Match ``Category`` / ``Category|Subcategory`` codes.

    Same category matches.  Otherwise two subcategories match when one
    contains the other, and a visitor value with no subcategory is
    compared against the target's subcategory the same way.
    """
    visitor_value = _norm(actual)
    if not visitor_value:
        return False
    v_cat, v_sub = _split_industry(visitor_value)

    for target in targets:
        t_cat, t_sub = _split_industry(_norm(target))
        if not t_cat and not t_sub:
            continue
        if v_cat and v_cat == t_cat:
            return True
        if t_sub:
            other = v_sub or v_cat
            if other and (other in t_sub or t_sub in other):
                return True
    return False


def matches_role(job_title: Optional[str], rule: RoleMatchRule) -> bool:
    title = _norm(job_title)
    if not title:
        return False
    for keywords in rule.target_roles.values():
        for keyword in keywords:
            keyword = _norm(keyword)
            if not keyword:
                continue
            if rule.match_type == "exact":
                if title == keyword:
                    return True
            elif keyword in title:
                return True
    return False


def _url_pattern(pattern: str) -> str:
    # Patterns saved through JSON encoders may carry escaped slashes
    return _norm(pattern.replace("\\/", "/"))


def detects_pattern(signals: VisitorSignals, rule: PatternDetectRule) -> bool:
    """Return ``True`` when any activity record satisfies the detector.

    Unknown detection methods never fire.
    """
    method = rule.detection_method

    if method == "url_pattern":
        patterns = [p for p in (_url_pattern(p) for p in rule.patterns) if p]
        return any(
            pattern in url.lower() for url in signals.page_urls for pattern in patterns
        )

    if method == "utm_parameter":
        wanted = _norm(rule.utm_content)
        if not wanted:
            return False
        return any(
            wanted in _norm(a.utm_content) or wanted in _norm(a.referrer)
            for a in signals.activities
        )

    if method == "utm_source":
        sources = [s for s in (_norm(s) for s in rule.utm_sources) if s]
        return any(
            source in _norm(a.utm_source) or source in _norm(a.referrer)
            for a in signals.activities
            for source in sources
        )

    logger.debug("Unknown detection method %r never fires", method)
    return False


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate_rule(name: str, rule: Rule, signals: VisitorSignals) -> int:
    """Return the non-negative points *rule* awards for *signals*.

    A rule the evaluator cannot interpret contributes 0 and is logged.
    """
    if isinstance(rule, IndustryMatchRule):
        return rule.points if matches_industry(signals.industry, rule.values) else 0

    if isinstance(rule, ValueMatchRule):
        attribute = _VALUE_SIGNALS.get(name)
        if attribute is None:
            logger.warning("No visitor attribute for value-match rule %s", name)
            return 0
        hit = matches_value(
            getattr(signals, attribute), rule.values, _TOP_BRACKETS.get(name)
        )
        return rule.points if hit else 0

    if isinstance(rule, (ThresholdCountRule, CappedAccumulatorRule)):
        counter = _COUNT_SIGNALS.get(name)
        if counter is None:
            logger.warning("No activity count for rule %s", name)
            return 0
        observed = getattr(signals, counter)
        if isinstance(rule, ThresholdCountRule):
            return rule.points if observed >= rule.minimum_count else 0
        points = observed * rule.points_per_unit
        if rule.max_points is not None:
            points = min(points, rule.max_points)
        return points

    if isinstance(rule, PatternDetectRule):
        return rule.points if detects_pattern(signals, rule) else 0

    if isinstance(rule, RoleMatchRule):
        return rule.points if matches_role(signals.job_title, rule) else 0

    logger.warning("Cannot evaluate rule %s of type %s", name, type(rule).__name__)
    return 0


def score_room(signals: VisitorSignals, rule_set: Optional[RoomRuleSet]) -> RoomScore:
    """Score one room.

    Every enabled scoring rule appears in the breakdown, including those
    that awarded nothing.  Disabled rules and the Problem gate are left
    out.  A missing rule set scores 0.
    """
    if rule_set is None:
        return RoomScore(score=0, breakdown={})

    breakdown: Dict[str, int] = {}
    for name, rule in rule_set.rules():
        if not rule.enabled or isinstance(rule, GateRule):
            continue
        breakdown[name] = max(0, evaluate_rule(name, rule, signals))

    return RoomScore(score=sum(breakdown.values()), breakdown=breakdown)
