from __future__ import annotations

import base64
import binascii
import logging
import re
from datetime import datetime, timezone

from chat_relay.application.dto.message import ChatFeedDTO, HealthDTO, InlineFileDTO, SendMessageDTO
from chat_relay.application.exceptions import (
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from chat_relay.application.state import ChatState
from chat_relay.domain.entities.message import AttachmentRef, Message, MessageDraft
from chat_relay.domain.sanitizer import sanitize
from chat_relay.domain.value_objects.enums import EventType
from chat_relay.infrastructure.memory import mappers

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:(.+?);base64,(.+)$", re.DOTALL)
_FILE_REF_RE = re.compile(r"^(?:.*/api/file/)?(\d+)$")
_ID_CURSOR_RE = re.compile(r"[0-9]+")


async def send_message(
    state: ChatState,
    payload: SendMessageDTO,
    client_key: str | None = None,
) -> Message:
    """Validate, sanitize, store and fan out one chat message.

    An inline ``data:`` file is decoded and size-checked before anything is
    stored; the attachment record and the message are then written under
    the same lock so a message never points at a missing file.
    """
    name = (payload.name or "").strip()
    text = (payload.text or "").strip()
    if not name or not text:
        raise ValidationError("Name and message are required")

    inline = _decode_inline_file(payload.file, state.settings.MAX_UPLOAD_BYTES)
    reply_to = (payload.reply_to or "").strip() or None

    with state.lock:
        attachment = _resolve_attachment(state, payload.file, inline)
        message = state.ledger.append(
            MessageDraft(
                author=sanitize(name),
                body=sanitize(text),
                attachment=attachment,
                reply_to=sanitize(reply_to) if reply_to else None,
            )
        )
        if client_key:
            state.presence.touch(client_key)
        state.dispatcher.publish(EventType.CHAT_MESSAGE, mappers.entity_to_payload(message))

    logger.debug("Message %s appended (attachment=%s)", message.id, attachment and attachment.id)
    return message


async def delete_message(
    state: ChatState,
    *,
    password: str | None,
    message_id: str | None = None,
    timestamp: str | None = None,
) -> Message:
    if not message_id and not timestamp:
        raise ValidationError("Message id or timestamp is required")
    ts = _parse_timestamp(timestamp) if not message_id and timestamp else None

    with state.lock:
        if message_id:
            removed = state.ledger.remove_by_id(str(message_id), password)
        else:
            removed = state.ledger.remove_by_timestamp(ts, password)  # type: ignore[arg-type]
        if removed is None:
            raise NotFoundError("Message not found")

        if state.settings.BROADCAST_DELETIONS:
            state.dispatcher.publish(
                EventType.MESSAGE_DELETED,
                {"id": removed.id, "timestamp": removed.timestamp.isoformat()},
            )
        if (
            state.settings.CASCADE_ATTACHMENT_DELETE
            and removed.attachment is not None
            and not state.ledger.references_attachment(removed.attachment.id)
        ):
            state.attachments.delete(removed.attachment.id)

    logger.info("Message %s deleted", removed.id)
    return removed


async def history(state: ChatState, client_key: str | None = None) -> ChatFeedDTO:
    with state.lock:
        if client_key:
            state.presence.touch(client_key)
        return _feed(state, state.ledger.list_all())


async def updates(
    state: ChatState,
    client_key: str | None = None,
    *,
    since: str | None = None,
    after_id: str | None = None,
) -> ChatFeedDTO:
    """Poll-mode delta: messages strictly after the cursor, oldest first."""
    if after_id is not None and not _ID_CURSOR_RE.fullmatch(after_id):
        raise ValidationError("afterId must be a message id")
    after_timestamp = _parse_cursor(since) if since else None

    with state.lock:
        if client_key:
            state.presence.touch(client_key)
        messages = state.ledger.list_since(after_id=after_id, after_timestamp=after_timestamp)
        return _feed(state, messages)


async def export_snapshot(state: ChatState, password: str | None) -> str:
    with state.lock:
        state.ledger.authorize(password)
        return state.ledger.export_all()


async def import_snapshot(state: ChatState, password: str | None, raw: str | bytes) -> int:
    with state.lock:
        state.ledger.authorize(password)
        if not state.ledger.import_all(raw):
            raise ValidationError("Snapshot must be a JSON array of messages in append order")
        messages = state.ledger.list_all()
        state.dispatcher.publish(
            EventType.CHAT_HISTORY,
            [mappers.entity_to_payload(m) for m in messages],
        )
    return len(messages)


async def health(state: ChatState) -> HealthDTO:
    with state.lock:
        return HealthDTO(
            status="OK",
            uptime_seconds=state.uptime_seconds(),
            total_messages=len(state.ledger),
            online_users=state.presence.active_count(),
            files_stored=len(state.attachments),
        )


def _feed(state: ChatState, messages: list[Message]) -> ChatFeedDTO:
    now = state.clock.now()
    return ChatFeedDTO(
        messages=messages,
        online_count=state.presence.active_count(now),
        server_uptime_seconds=state.uptime_seconds(),
        last_update=int(now.timestamp() * 1000),
    )


def _decode_inline_file(file: InlineFileDTO | None, max_bytes: int) -> tuple[bytes, str] | None:
    if file is None or not file.content or not file.content.startswith("data:"):
        return None
    match = _DATA_URL_RE.match(file.content)
    if match is None:
        raise ValidationError("Inline files must be base64 data URLs")
    try:
        data = base64.b64decode("".join(match.group(2).split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Invalid base64 file content") from exc
    if len(data) > max_bytes:
        raise PayloadTooLargeError("File too large")
    return data, match.group(1)


def _resolve_attachment(
    state: ChatState,
    file: InlineFileDTO | None,
    inline: tuple[bytes, str] | None,
) -> AttachmentRef | None:
    """Must be called with ``state.lock`` held."""
    if file is None:
        return None

    if inline is not None:
        data, mime_type = inline
        display_name = file.name or "file"
        file_id = state.attachments.put(data, mime_type, display_name)
        return AttachmentRef(id=file_id, mime_type=mime_type, display_name=display_name, size=len(data))

    match = _FILE_REF_RE.match((file.content or "").strip())
    record = state.attachments.get(match.group(1)) if match else None
    if record is None:
        logger.debug("Dropping unresolvable attachment reference %r", file.content)
        return None
    return AttachmentRef(
        id=record.id,
        mime_type=record.mime_type,
        display_name=file.name or record.display_name,
        size=record.size,
    )


def _parse_timestamp(value: str) -> datetime:
    try:
        ts = datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError("timestamp must be ISO-8601") from exc
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _parse_cursor(value: str) -> datetime:
    """Accept epoch milliseconds or an ISO-8601 instant."""
    try:
        millis = float(value)
    except ValueError:
        return _parse_timestamp(value)
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as exc:
        # nan, inf and values past the platform's time_t range
        raise ValidationError("since must be epoch milliseconds or ISO-8601") from exc
