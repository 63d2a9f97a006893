from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class AttachmentRef:
    """Non-owning pointer from a message into the attachment store."""

    id: str
    mime_type: str
    display_name: str
    size: int = 0


@dataclass(frozen=True, slots=True)
class MessageDraft:
    """Sanitized candidate message, before the ledger assigns identity."""

    author: str
    body: str
    attachment: AttachmentRef | None = None
    reply_to: str | None = None


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    timestamp: datetime
    author: str
    body: str
    attachment: AttachmentRef | None = None
    reply_to: str | None = None

    @property
    def seq(self) -> int:
        return int(self.id)
