"""Transient blob store for uploaded and inline files."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from chat_relay.application.exceptions import StorageError
from chat_relay.application.ports.clock import Clock, SystemClock
from chat_relay.domain.entities.attachment import AttachmentRecord
from chat_relay.domain.value_objects.ids import MonotonicIdGenerator

logger = logging.getLogger(__name__)


class AttachmentStore:
    """Maps opaque file ids to raw bytes plus MIME type and display name.

    Records live until :meth:`evict_older_than` sweeps them or the process
    exits. Eviction reads ``created_at``; the id is only an identity.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        ids: MonotonicIdGenerator | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._ids = ids or MonotonicIdGenerator()
        self._records: dict[str, AttachmentRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._records

    def put(self, data: bytes, mime_type: str, display_name: str) -> str:
        now = self._clock.now()
        file_id = str(self._ids.next_id(now))
        try:
            self._records[file_id] = AttachmentRecord(
                id=file_id,
                data=bytes(data),
                mime_type=mime_type,
                display_name=display_name,
                created_at=now,
            )
        except MemoryError as exc:
            raise StorageError("Unable to store file") from exc
        logger.debug("Stored file %s (%s, %d bytes)", file_id, mime_type, len(data))
        return file_id

    def get(self, file_id: str) -> AttachmentRecord | None:
        return self._records.get(file_id)

    def delete(self, file_id: str) -> bool:
        return self._records.pop(file_id, None) is not None

    def evict_older_than(self, max_age: timedelta, now: datetime | None = None) -> int:
        cutoff = (now or self._clock.now()) - max_age
        expired = [fid for fid, rec in self._records.items() if rec.created_at < cutoff]
        for fid in expired:
            del self._records[fid]
        return len(expired)
