from fastapi import APIRouter, Depends

from reading_room.api.deps import get_scoring_config_service
from reading_room.schemas.thresholds import RoomThresholds, ThresholdsOut
from reading_room.services.scoring_config_service import ScoringConfigService

router = APIRouter(prefix="/room-thresholds", tags=["Room Thresholds"])


@router.get("/global", response_model=ThresholdsOut)
async def get_global_thresholds(
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> ThresholdsOut:
    return await service.get_thresholds()


@router.put("/global", response_model=ThresholdsOut)
async def save_global_thresholds(
    thresholds: RoomThresholds,
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> ThresholdsOut:
    return await service.save_thresholds(thresholds.model_dump())


@router.get("/clients/{client_id}", response_model=ThresholdsOut)
async def get_client_thresholds(
    client_id: int,
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> ThresholdsOut:
    """Return the thresholds applied to a client and where they come from."""
    return await service.get_thresholds(client_id)


@router.put("/clients/{client_id}", response_model=ThresholdsOut)
async def save_client_thresholds(
    client_id: int,
    thresholds: RoomThresholds,
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> ThresholdsOut:
    return await service.save_thresholds(thresholds.model_dump(), client_id=client_id)


@router.delete("/clients/{client_id}")
async def reset_client_thresholds(
    client_id: int,
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> dict:
    deleted = await service.reset_client_thresholds(client_id)
    return {"deleted": deleted}
