from sqlalchemy import Column, String, Text, DateTime, CheckConstraint, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from reading_room.core.constants import ACTIVITY_TYPES
from reading_room.models.base import Base

_ACTIVITY_TYPE_SQL = ", ".join(f"'{t}'" for t in ACTIVITY_TYPES)


class VisitorActivity(Base):
    __tablename__ = "visitor_activities"
    activity_id = Column(UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid())
    visitor_id = Column(UUID(as_uuid=True), ForeignKey("visitors.visitor_id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    url = Column(Text)
    referrer = Column(Text)
    utm_source = Column(String(255))
    utm_medium = Column(String(255))
    utm_campaign = Column(String(255))
    utm_content = Column(String(255))
    occurred_at = Column(DateTime(timezone=True), server_default=func.now())

    visitor = relationship("Visitor", back_populates="activities")

    __table_args__ = (
        Index("idx_visitor_activities_visitor_occurred", "visitor_id", "occurred_at"),
        CheckConstraint(f"type IN ({_ACTIVITY_TYPE_SQL})", name="ck_visitor_activity_type"),
    )
