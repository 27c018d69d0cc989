from sqlalchemy import Column, String, Integer, Boolean, Text, DateTime, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy import text

from reading_room.models.base import Base


class RoomContentLink(Base):
    __tablename__ = "room_content_links"
    link_id = Column(UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid())
    campaign_id = Column(Integer, nullable=False)
    room_type = Column(String(20), nullable=False)
    link_title = Column(String(255), nullable=False)
    link_url = Column(Text, nullable=False)
    url_summary = Column(Text)
    link_description = Column(Text)
    is_active = Column(Boolean, nullable=False, server_default=text("true"))
    # NULL sorts after every ordered link
    link_order = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_room_content_links_campaign_room", "campaign_id", "room_type"),
        CheckConstraint("room_type IN ('problem', 'solution', 'offer')", name="ck_content_links_room_type"),
    )
