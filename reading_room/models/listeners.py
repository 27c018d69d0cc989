from datetime import datetime, timezone

from sqlalchemy import event

from reading_room.models.visitor import Visitor
from reading_room.models.scoring_rule import GlobalScoringRuleSet, ClientScoringRuleSet
from reading_room.models.room_threshold import RoomThreshold


# Auto updated_at
@event.listens_for(Visitor, "before_update")
@event.listens_for(GlobalScoringRuleSet, "before_update")
@event.listens_for(ClientScoringRuleSet, "before_update")
@event.listens_for(RoomThreshold, "before_update")
def update_timestamp(mapper, connection, target):
    target.updated_at = datetime.now(timezone.utc)
