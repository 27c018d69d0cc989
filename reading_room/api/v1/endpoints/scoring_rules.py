from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from reading_room.api.deps import get_scoring_config_service
from reading_room.schemas.scoring_rules import EffectiveRulesOut, RuleSetOut
from reading_room.services.scoring_config_service import ScoringConfigService

router = APIRouter(prefix="/scoring-rules", tags=["Scoring Rules"])


@router.get("/global", response_model=Dict[str, RuleSetOut])
async def list_global_rules(
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> Dict[str, RuleSetOut]:
    """Return the global rule set for every room, seeding defaults if empty."""
    return await service.list_global_rules()


@router.get("/global/{room_type}", response_model=RuleSetOut)
async def get_global_rules(
    room_type: str,
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> RuleSetOut:
    return await service.get_global_rules(room_type)


@router.put("/global/{room_type}", response_model=RuleSetOut)
async def save_global_rules(
    room_type: str,
    rules: Dict[str, Any] = Body(...),
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> RuleSetOut:
    """Replace the global rule set for a room.

    The body must name every required rule for the room; legacy field
    names are accepted and stored in canonical form.
    """
    return await service.save_global_rules(room_type, rules)


@router.get("/clients/{client_id}", response_model=EffectiveRulesOut)
async def get_client_rules(
    client_id: int,
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> EffectiveRulesOut:
    """Return the effective rules per room and whether each is client or global."""
    return await service.get_client_rules(client_id)


@router.put("/clients/{client_id}/{room_type}", response_model=RuleSetOut)
async def save_client_rules(
    client_id: int,
    room_type: str,
    rules: Dict[str, Any] = Body(...),
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> RuleSetOut:
    return await service.save_client_rules(client_id, room_type, rules)


@router.delete("/clients/{client_id}/{room_type}")
async def reset_client_room_rules(
    client_id: int,
    room_type: str,
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> dict:
    deleted = await service.reset_client_rules(client_id, room_type)
    return {"deleted": deleted}


@router.delete("/clients/{client_id}")
async def reset_client_rules(
    client_id: int,
    service: ScoringConfigService = Depends(get_scoring_config_service),
) -> dict:
    deleted = await service.reset_client_rules(client_id)
    return {"deleted": deleted}
