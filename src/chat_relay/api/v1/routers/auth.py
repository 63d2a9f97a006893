from __future__ import annotations

from fastapi import APIRouter

from chat_relay.api.v1.schemas.auth import LoginRequest
from chat_relay.api.v1.schemas.common import StatusResponse
from chat_relay.application.exceptions import ValidationError

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=StatusResponse)
@router.post("/api/login", response_model=StatusResponse)
async def login(body: LoginRequest) -> StatusResponse:
    """Display-name check only; there are no accounts."""
    if not body.name.strip():
        raise ValidationError("Name is required")
    return StatusResponse(success=True)
