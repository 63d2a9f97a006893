"""In-memory, bounded, ordered store of chat messages."""
from __future__ import annotations

import bisect
import dataclasses
import hmac
import logging
from datetime import datetime, timedelta
from typing import Sequence

from pydantic import ValidationError as PydanticValidationError

from chat_relay.application.exceptions import ForbiddenError
from chat_relay.application.ports.clock import Clock, SystemClock, to_millis
from chat_relay.domain.entities.message import Message, MessageDraft
from chat_relay.domain.value_objects.enums import TrimStrategy
from chat_relay.domain.value_objects.ids import MonotonicIdGenerator
from chat_relay.infrastructure.memory import mappers
from chat_relay.infrastructure.memory.models import SnapshotAdapter

logger = logging.getLogger(__name__)


class MessageLedger:
    """Owns every retained :class:`Message`, oldest first.

    Ids and timestamps are assigned here and both grow strictly with
    append order, so either one can serve as a polling cursor. Not
    thread-safe on its own: callers serialize mutation through
    ``ChatState.lock``.
    """

    def __init__(
        self,
        *,
        moderation_secret: str,
        max_retained: int = 500,
        trim_strategy: TrimStrategy = TrimStrategy.HALVE,
        trim_target: int | None = None,
        clock: Clock | None = None,
        ids: MonotonicIdGenerator | None = None,
    ) -> None:
        if max_retained < 1:
            raise ValueError("max_retained must be positive")
        if trim_target is None:
            trim_target = max(max_retained // 2, 1)
        if not 1 <= trim_target <= max_retained:
            raise ValueError("trim_target must be between 1 and max_retained")

        self._secret = moderation_secret
        self._max_retained = max_retained
        self._trim_strategy = TrimStrategy(trim_strategy)
        self._trim_target = trim_target
        self._clock = clock or SystemClock()
        self._ids = ids or MonotonicIdGenerator()
        self._messages: list[Message] = []
        self._last_timestamp: datetime | None = None

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def max_retained(self) -> int:
        return self._max_retained

    @property
    def trim_strategy(self) -> TrimStrategy:
        return self._trim_strategy

    # -- writes ---------------------------------------------------------

    def append(self, draft: MessageDraft) -> Message:
        now = to_millis(self._clock.now())
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(milliseconds=1)

        message = Message(
            id=str(self._ids.next_id(now)),
            timestamp=now,
            author=draft.author,
            body=draft.body,
            attachment=draft.attachment,
            reply_to=draft.reply_to,
        )
        self._messages.append(message)
        self._last_timestamp = now

        evicted = self._trim()
        if evicted:
            logger.debug(
                "Ledger trimmed %d messages (strategy=%s, retained=%d)",
                len(evicted), self._trim_strategy, len(self._messages),
            )
        return message

    def delete_by_id(self, message_id: str, credential: str | None) -> bool:
        return self.remove_by_id(message_id, credential) is not None

    def delete_by_timestamp(self, timestamp: datetime, credential: str | None) -> bool:
        return self.remove_by_timestamp(timestamp, credential) is not None

    def remove_by_id(self, message_id: str, credential: str | None) -> Message | None:
        """Delete one message, returning it, or ``None`` if it is not retained.

        A wrong credential raises :class:`ForbiddenError` before any lookup.
        """
        self.authorize(credential)
        return self._pop_where(lambda m: m.id == message_id)

    def remove_by_timestamp(self, timestamp: datetime, credential: str | None) -> Message | None:
        self.authorize(credential)
        return self._pop_where(lambda m: m.timestamp == timestamp)

    def evict_older_than(self, max_age: timedelta, now: datetime | None = None) -> list[Message]:
        cutoff = (now or self._clock.now()) - max_age
        index = bisect.bisect_left(self._messages, cutoff, key=lambda m: m.timestamp)
        evicted = self._messages[:index]
        del self._messages[:index]
        return evicted

    def import_all(self, raw: str | bytes) -> bool:
        """Replace the whole ledger from a JSON snapshot.

        Returns ``False`` and leaves the ledger untouched when the payload
        is not a list of message records with strictly increasing ids and
        timestamps. Imported timestamps are truncated to milliseconds first.
        """
        try:
            records = SnapshotAdapter.validate_json(raw)
        except PydanticValidationError as exc:
            logger.info("Snapshot rejected: %d validation errors", exc.error_count())
            return False

        messages = [
            dataclasses.replace(m, timestamp=to_millis(m.timestamp))
            for m in map(mappers.record_to_entity, records)
        ]
        if not _strictly_ordered(messages):
            logger.info("Snapshot rejected: records are not in append order")
            return False

        self._messages = messages
        if messages:
            self._ids.advance_past(messages[-1].seq)
            if self._last_timestamp is None or messages[-1].timestamp > self._last_timestamp:
                self._last_timestamp = messages[-1].timestamp
        self._trim()
        logger.info("Ledger imported %d messages", len(self._messages))
        return True

    # -- reads ----------------------------------------------------------

    def list_all(self) -> list[Message]:
        return list(self._messages)

    def list_since(
        self,
        *,
        after_id: str | int | None = None,
        after_timestamp: datetime | None = None,
    ) -> list[Message]:
        """Messages strictly after the cursor, oldest first.

        ``after_id`` wins when both cursors are given.
        """
        if after_id is not None:
            index = bisect.bisect_right(self._messages, int(after_id), key=lambda m: m.seq)
        elif after_timestamp is not None:
            index = bisect.bisect_right(self._messages, after_timestamp, key=lambda m: m.timestamp)
        else:
            index = 0
        return self._messages[index:]

    def get(self, message_id: str) -> Message | None:
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def references_attachment(self, file_id: str) -> bool:
        return any(
            m.attachment is not None and m.attachment.id == file_id
            for m in self._messages
        )

    def export_all(self) -> str:
        records = [mappers.entity_to_record(m) for m in self._messages]
        return SnapshotAdapter.dump_json(records, by_alias=True).decode()

    def authorize(self, credential: str | None) -> None:
        if credential is None or not hmac.compare_digest(
            credential.encode(), self._secret.encode(),
        ):
            raise ForbiddenError("Wrong moderation password")

    # -- internals ------------------------------------------------------

    def _pop_where(self, predicate) -> Message | None:
        for index, message in enumerate(self._messages):
            if predicate(message):
                return self._messages.pop(index)
        return None

    def _trim(self) -> list[Message]:
        size = len(self._messages)
        if self._trim_strategy is TrimStrategy.NEVER or size <= self._max_retained:
            return []
        keep = self._trim_target if self._trim_strategy is TrimStrategy.HALVE else self._max_retained
        evicted = self._messages[: size - keep]
        del self._messages[: size - keep]
        return evicted


def _strictly_ordered(messages: Sequence[Message]) -> bool:
    return all(
        prev.seq < cur.seq and prev.timestamp < cur.timestamp
        for prev, cur in zip(messages, messages[1:])
    )
