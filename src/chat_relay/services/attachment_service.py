from __future__ import annotations

import logging

from chat_relay.application.dto.message import UploadedFileDTO
from chat_relay.application.exceptions import NotFoundError, PayloadTooLargeError
from chat_relay.application.state import ChatState
from chat_relay.domain.entities.attachment import AttachmentRecord

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


async def upload(
    state: ChatState,
    data: bytes,
    mime_type: str | None,
    filename: str | None,
) -> UploadedFileDTO:
    """Store an uploaded file. Oversized payloads are rejected before storage."""
    if len(data) > state.settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError("No file uploaded or file too large.")

    mime_type = mime_type or DEFAULT_MIME_TYPE
    name = filename or "file"
    with state.lock:
        file_id = state.attachments.put(data, mime_type, name)

    logger.info("Stored upload %s (%s, %d bytes)", file_id, mime_type, len(data))
    return UploadedFileDTO(file_id=file_id, name=name, type=mime_type, size=len(data))


async def fetch(state: ChatState, file_id: str) -> AttachmentRecord:
    record = state.attachments.get(file_id)
    if record is None:
        raise NotFoundError("File not found")
    return record
