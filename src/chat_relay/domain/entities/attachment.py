from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class AttachmentRecord:
    id: str
    data: bytes
    mime_type: str
    display_name: str
    created_at: datetime

    @property
    def size(self) -> int:
        return len(self.data)
