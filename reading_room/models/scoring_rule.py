from sqlalchemy import Column, String, Integer, DateTime, CheckConstraint, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.sql import func

from reading_room.models.base import Base

_ROOM_TYPE_CHECK = "room_type IN ('problem', 'solution', 'offer')"


class GlobalScoringRuleSet(Base):
    """Default rule set for one room, used by every client without an override.

    ``rules_config`` is the JSONB rule map validated by
    ``reading_room.schemas.scoring_rules`` before every write.  Rows are
    seeded from ``DEFAULT_SCORING_RULES`` when the table is empty.
    """

    __tablename__ = "global_scoring_rules"
    rule_set_id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    room_type = Column(String(20), nullable=False, unique=True)
    rules_config = Column(JSONB, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(_ROOM_TYPE_CHECK, name="ck_global_rules_room_type"),
    )


class ClientScoringRuleSet(Base):
    """Client-specific rule set that fully replaces the global one for its room."""

    __tablename__ = "client_scoring_rules"
    rule_set_id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    client_id = Column(Integer, nullable=False)
    room_type = Column(String(20), nullable=False)
    rules_config = Column(JSONB, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("client_id", "room_type", name="uq_client_rules_client_room"),
        CheckConstraint(_ROOM_TYPE_CHECK, name="ck_client_rules_room_type"),
    )
