"""Repository layer: all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains scoring and resolution logic.
"""

from reading_room.repositories.visitor_repository import VisitorRepository
from reading_room.repositories.activity_repository import ActivityRepository
from reading_room.repositories.scoring_rule_repository import ScoringRuleRepository
from reading_room.repositories.threshold_repository import ThresholdRepository
from reading_room.repositories.template_repository import TemplateRepository
from reading_room.repositories.content_link_repository import ContentLinkRepository
from reading_room.repositories.prospect_repository import ProspectRepository

__all__ = [
    "VisitorRepository",
    "ActivityRepository",
    "ScoringRuleRepository",
    "ThresholdRepository",
    "TemplateRepository",
    "ContentLinkRepository",
    "ProspectRepository",
]
