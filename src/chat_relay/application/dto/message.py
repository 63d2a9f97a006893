from __future__ import annotations

from dataclasses import dataclass

from chat_relay.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class InlineFileDTO:
    """File part of an inbound chat message.

    ``content`` is either a ``data:<mime>;base64,<payload>`` URL or a
    reference returned by the upload endpoint.
    """

    content: str | None = None
    name: str | None = None
    type: str | None = None


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    name: str
    text: str
    file: InlineFileDTO | None = None
    reply_to: str | None = None


@dataclass(frozen=True, slots=True)
class UploadedFileDTO:
    file_id: str
    name: str
    type: str
    size: int

    @property
    def url(self) -> str:
        return f"/api/file/{self.file_id}"


@dataclass(frozen=True, slots=True)
class ChatFeedDTO:
    """Messages plus the live counters returned by history and poll calls."""

    messages: list[Message]
    online_count: int
    server_uptime_seconds: int
    last_update: int


@dataclass(frozen=True, slots=True)
class HealthDTO:
    status: str
    uptime_seconds: int
    total_messages: int
    online_users: int
    files_stored: int
