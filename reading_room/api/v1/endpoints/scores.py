from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from reading_room.api.deps import get_scoring_service, get_session_factory
from reading_room.core.rate_limit import limiter
from reading_room.schemas.score import BatchScoreRequest, BatchScoreResponse, ScoreResult
from reading_room.services.batch_scoring import recalculate_scores
from reading_room.services.scoring_service import ScoringService

router = APIRouter(prefix="/scores", tags=["Scores"])


@router.post("/visitors/{visitor_id}", response_model=ScoreResult)
async def score_visitor(
    visitor_id: UUID,
    force: bool = Query(False),
    service: ScoringService = Depends(get_scoring_service),
) -> ScoreResult:
    """Score a visitor, reusing a result younger than the freshness window.

    Pass ``force=true`` to recalculate regardless of age.
    """
    return await service.calculate_visitor_score(visitor_id, force=force)


@router.post("/batch", response_model=BatchScoreResponse)
@limiter.limit("5/minute")
async def score_batch(
    request: Request,
    request_body: BatchScoreRequest,
    session_factory=Depends(get_session_factory),
) -> BatchScoreResponse:
    """Recalculate scores for a set of visitors.

    Rate-limited to 5 requests/minute per IP.  Per-visitor failures are
    counted in ``failed`` and never fail the request.
    """
    result = await recalculate_scores(
        session_factory,
        request_body.visitor_ids,
        client_id=request_body.client_id,
        batch_size=request_body.batch_size,
        force=request_body.force,
    )
    return BatchScoreResponse(**result)
