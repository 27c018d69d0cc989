from sqlalchemy import Column, String, Integer, DateTime, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy import text

from reading_room.models.base import Base


class Visitor(Base):
    """Identified website visitor owned by a client (tenant).

    Holds the firmographic snapshot used by Problem-room rules and a
    cached copy of the latest score calculation.  ``score_calculated_at``
    drives the 24-hour freshness check; ``score_breakdown`` keeps the
    per-room totals and gate outcome so a cached result is complete.
    """

    __tablename__ = "visitors"
    visitor_id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    client_id = Column(Integer, index=True)
    company_name = Column(String(255))
    estimated_revenue = Column(String(100))
    estimated_employee_count = Column(String(50))
    industry = Column(String(255))
    state = Column(String(50))
    job_title = Column(String(255))
    lead_score = Column(Integer, nullable=False, server_default=text("0"))
    current_room = Column(String(20), nullable=False, server_default="none")
    score_calculated_at = Column(DateTime(timezone=True))
    score_breakdown = Column(JSONB)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    activities = relationship(
        "VisitorActivity", back_populates="visitor", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_visitors_score_calculated_at", "score_calculated_at"),
        CheckConstraint("lead_score >= 0", name="ck_visitor_lead_score_non_negative"),
        CheckConstraint(
            "current_room IN ('none', 'problem', 'solution', 'offer')",
            name="ck_visitor_current_room",
        ),
    )
