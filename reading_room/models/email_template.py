from sqlalchemy import Column, String, Integer, Boolean, DateTime, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.sql import func
from sqlalchemy import text

from reading_room.models.base import Base


class EmailTemplate(Base):
    """AI prompt template for one room.

    ``prompt_template`` is a JSONB object holding the seven prompt parts.
    Global templates have ``is_global = true`` and no campaign.
    """

    __tablename__ = "email_templates"
    template_id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    campaign_id = Column(Integer)
    room_type = Column(String(20), nullable=False)
    template_name = Column(String(255), nullable=False)
    prompt_template = Column(JSONB, nullable=False)
    is_global = Column(Boolean, nullable=False, server_default=text("false"))
    template_order = Column(Integer, nullable=False, server_default=text("0"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_email_templates_campaign_room", "campaign_id", "room_type"),
        CheckConstraint(
            "room_type IN ('problem', 'solution', 'offer')",
            name="ck_email_templates_room_type",
        ),
        CheckConstraint(
            "(is_global AND campaign_id IS NULL) OR (NOT is_global AND campaign_id IS NOT NULL)",
            name="ck_email_templates_scope",
        ),
    )
