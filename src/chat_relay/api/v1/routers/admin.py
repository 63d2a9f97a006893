"""Password-guarded ledger backup and restore."""
from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import Response

from chat_relay.api.deps import DeletePassword, StateDep
from chat_relay.api.v1.schemas.message import ImportResponse
from chat_relay.services import message_service

router = APIRouter(prefix="/api", tags=["admin"])


@router.get("/export")
async def export_messages(state: StateDep, password: DeletePassword = None) -> Response:
    snapshot = await message_service.export_snapshot(state, password)
    return Response(
        content=snapshot,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="chat-export.json"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_messages(
    request: Request,
    state: StateDep,
    password: DeletePassword = None,
) -> ImportResponse:
    raw = await request.body()
    imported = await message_service.import_snapshot(state, password, raw)
    return ImportResponse(imported=imported)
