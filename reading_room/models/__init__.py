from reading_room.models.base import Base
from reading_room.models.visitor import Visitor
from reading_room.models.visitor_activity import VisitorActivity
from reading_room.models.scoring_rule import GlobalScoringRuleSet, ClientScoringRuleSet
from reading_room.models.room_threshold import RoomThreshold
from reading_room.models.email_template import EmailTemplate
from reading_room.models.content_link import RoomContentLink
from reading_room.models.prospect import Prospect

# Import event listeners to register them
from reading_room.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "Visitor",
    "VisitorActivity",
    "GlobalScoringRuleSet",
    "ClientScoringRuleSet",
    "RoomThreshold",
    "EmailTemplate",
    "RoomContentLink",
    "Prospect",
]
