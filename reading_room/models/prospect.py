from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.sql import func
from sqlalchemy import text

from reading_room.models.base import Base


class Prospect(Base):
    """A visitor enrolled in a campaign's email sequence.

    ``urls_sent`` is the ordered history of content-link URLs already
    emailed to this prospect; the link selector never offers them again.
    """

    __tablename__ = "prospects"
    prospect_id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    campaign_id = Column(Integer, nullable=False, index=True)
    visitor_id = Column(
        UUID(as_uuid=True),
        ForeignKey("visitors.visitor_id", ondelete="CASCADE"),
        nullable=False,
    )
    company_name = Column(String(255))
    contact_name = Column(String(255))
    contact_email = Column(String(255))
    current_room = Column(String(20), nullable=False, server_default="none")
    lead_score = Column(Integer, nullable=False, server_default=text("0"))
    days_in_room = Column(Integer, nullable=False, server_default=text("0"))
    email_sequence_position = Column(Integer, nullable=False, server_default=text("0"))
    urls_sent = Column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "current_room IN ('none', 'problem', 'solution', 'offer')",
            name="ck_prospect_current_room",
        ),
    )
