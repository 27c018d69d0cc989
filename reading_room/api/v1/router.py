from fastapi import APIRouter

from reading_room.api.v1.endpoints import (
    health,
    prospects,
    room_thresholds,
    scores,
    scoring_rules,
    templates,
)

router = APIRouter(prefix="/api/v1")

router.include_router(scoring_rules.router)
router.include_router(room_thresholds.router)
router.include_router(scores.router)
router.include_router(templates.router)
router.include_router(prospects.router)
router.include_router(health.router)
