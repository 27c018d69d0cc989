from sqlalchemy import Column, Integer, DateTime, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy import text

from reading_room.models.base import Base


class RoomThreshold(Base):
    """Score boundaries between rooms.

    A row with ``client_id IS NULL`` holds the global defaults; every
    other row is a client override.  Ordering is enforced both by the
    ``RoomThresholds`` schema and by a CHECK constraint.
    """

    __tablename__ = "room_thresholds"
    threshold_id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    client_id = Column(Integer)
    problem_max = Column(Integer, nullable=False)
    solution_max = Column(Integer, nullable=False)
    offer_min = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index(
            "uq_room_thresholds_client",
            "client_id",
            unique=True,
            postgresql_where=text("client_id IS NOT NULL"),
        ),
        Index(
            "uq_room_thresholds_global",
            text("(client_id IS NULL)"),
            unique=True,
            postgresql_where=text("client_id IS NULL"),
        ),
        CheckConstraint(
            "problem_max > 0 AND solution_max > 0 AND offer_min > 0",
            name="ck_room_thresholds_positive",
        ),
        CheckConstraint(
            "problem_max < solution_max AND solution_max < offer_min",
            name="ck_room_thresholds_order",
        ),
    )
