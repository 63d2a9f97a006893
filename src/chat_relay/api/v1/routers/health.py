from __future__ import annotations

from fastapi import APIRouter

from chat_relay.api.deps import StateDep
from chat_relay.api.v1.schemas.common import HealthResponse
from chat_relay.services import message_service

router = APIRouter(tags=["health"])


@router.get("/api/health", response_model=HealthResponse)
async def health(state: StateDep) -> HealthResponse:
    return HealthResponse.model_validate(await message_service.health(state))
