from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import Response

from chat_relay.api.deps import StateDep
from chat_relay.api.v1.schemas.file import UploadedFile, UploadResponse
from chat_relay.application.exceptions import PayloadTooLargeError, ValidationError
from chat_relay.services import attachment_service

router = APIRouter(tags=["files"])


@router.post("/upload", response_model=UploadResponse)
async def upload(state: StateDep, file: UploadFile | None = File(None)) -> UploadResponse:
    if file is None:
        raise ValidationError("No file uploaded or file too large.")

    limit = state.settings.MAX_UPLOAD_BYTES
    if file.size is not None and file.size > limit:
        raise PayloadTooLargeError("No file uploaded or file too large.")
    # One byte past the cap is enough to tell an oversized upload apart.
    data = await file.read(limit + 1)
    await file.close()

    stored = await attachment_service.upload(state, data, file.content_type, file.filename)
    return UploadResponse(
        file=UploadedFile(
            name=stored.name,
            type=stored.type,
            size=stored.size,
            file_id=stored.file_id,
            content=stored.url,
        )
    )


@router.get("/api/file/{file_id}")
async def get_file(file_id: str, state: StateDep) -> Response:
    record = await attachment_service.fetch(state, file_id)
    return Response(
        content=record.data,
        media_type=record.mime_type,
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(record.display_name)}"},
    )
