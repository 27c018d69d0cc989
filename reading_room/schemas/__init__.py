"""Pydantic schemas package: re-exports for convenience."""

from reading_room.schemas.scoring_rules import (
    ProblemRuleSet as ProblemRuleSet,
    SolutionRuleSet as SolutionRuleSet,
    OfferRuleSet as OfferRuleSet,
    RoomRuleSet as RoomRuleSet,
    RuleSetOut as RuleSetOut,
    EffectiveRulesOut as EffectiveRulesOut,
    validate_rule_set as validate_rule_set,
)
from reading_room.schemas.thresholds import (
    RoomThresholds as RoomThresholds,
    ThresholdsOut as ThresholdsOut,
    validate_thresholds as validate_thresholds,
)
from reading_room.schemas.score import (
    RoomScore as RoomScore,
    ScoreResult as ScoreResult,
    BatchScoreRequest as BatchScoreRequest,
    BatchScoreResponse as BatchScoreResponse,
)
from reading_room.schemas.templates import (
    PromptTemplateOut as PromptTemplateOut,
    TemplateStats as TemplateStats,
    TemplatesResponse as TemplatesResponse,
)
from reading_room.schemas.generation import (
    ContentLinkOut as ContentLinkOut,
    VisitorContext as VisitorContext,
    GenerationPayload as GenerationPayload,
    GenerationResult as GenerationResult,
    GeneratedEmail as GeneratedEmail,
)
