"""Score calculation results and batch request/response schemas."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RoomScore(BaseModel):
    """Score for one room plus the points each enabled rule contributed."""

    model_config = ConfigDict(frozen=True)

    score: int = 0
    breakdown: Dict[str, int] = Field(default_factory=dict)


class ScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    visitor_id: UUID
    per_room_scores: Dict[str, int]
    total_score: int
    assigned_room: str
    gated: bool
    calculated_at: datetime
    breakdown: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    rule_sources: Dict[str, Optional[str]] = Field(default_factory=dict)
    thresholds: Dict[str, int] = Field(default_factory=dict)
    threshold_source: Optional[str] = None
    cached: bool = False


class BatchScoreRequest(BaseModel):
    visitor_ids: List[UUID] = Field(..., min_length=1)
    client_id: Optional[int] = None
    batch_size: Optional[int] = Field(None, gt=0)
    force: bool = False


class BatchScoreResponse(BaseModel):
    processed: int
    failed: int
    total: int
