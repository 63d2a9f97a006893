from __future__ import annotations

from chat_relay.api.v1.schemas.common import CamelModel


class UploadedFile(CamelModel):
    name: str
    type: str
    size: int
    file_id: str
    content: str


class UploadResponse(CamelModel):
    success: bool = True
    file: UploadedFile
