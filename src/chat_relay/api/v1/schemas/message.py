from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, computed_field

from chat_relay.api.v1.schemas.common import CamelModel
from chat_relay.application.dto.message import InlineFileDTO, SendMessageDTO


class AttachmentResponse(CamelModel):
    id: str
    mime_type: str
    display_name: str
    size: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return f"/api/file/{self.id}"


class MessageResponse(CamelModel):
    id: str
    timestamp: datetime
    author: str
    body: str
    attachment: AttachmentResponse | None = None
    reply_to: str | None = None


class FilePayload(CamelModel):
    content: str | None = None
    name: str | None = None
    type: str | None = None


class SendMessageRequest(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str = ""
    text: str = ""
    file: FilePayload | None = None
    reply_to: str | None = None

    def to_dto(self) -> SendMessageDTO:
        file = None
        if self.file is not None:
            file = InlineFileDTO(content=self.file.content, name=self.file.name, type=self.file.type)
        return SendMessageDTO(name=self.name, text=self.text, file=file, reply_to=self.reply_to)


class SendMessageResponse(CamelModel):
    success: bool = True
    message: MessageResponse


class ChatFeedResponse(CamelModel):
    messages: list[MessageResponse]
    online_count: int
    server_uptime_seconds: int
    last_update: int


class DeleteMessageRequest(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str | None = None
    timestamp: str | None = None
    password: str | None = None


class ImportResponse(CamelModel):
    success: bool = True
    imported: int
