from __future__ import annotations

from typing import Any

from chat_relay.domain.entities.message import AttachmentRef, Message
from chat_relay.infrastructure.memory.models import AttachmentRefRecord, MessageRecord


def record_to_entity(record: MessageRecord) -> Message:
    attachment = None
    if record.attachment is not None:
        attachment = AttachmentRef(
            id=record.attachment.id,
            mime_type=record.attachment.mime_type,
            display_name=record.attachment.display_name,
            size=record.attachment.size,
        )
    return Message(
        id=record.id,
        timestamp=record.timestamp,
        author=record.author,
        body=record.body,
        attachment=attachment,
        reply_to=record.reply_to,
    )


def entity_to_record(entity: Message) -> MessageRecord:
    attachment = None
    if entity.attachment is not None:
        attachment = AttachmentRefRecord(
            id=entity.attachment.id,
            mime_type=entity.attachment.mime_type,
            display_name=entity.attachment.display_name,
            size=entity.attachment.size,
        )
    return MessageRecord(
        id=entity.id,
        timestamp=entity.timestamp,
        author=entity.author,
        body=entity.body,
        attachment=attachment,
        reply_to=entity.reply_to,
    )


def entity_to_payload(entity: Message) -> dict[str, Any]:
    """JSON-ready dict, same shape as the HTTP message response."""
    return entity_to_record(entity).model_dump(mode="json", by_alias=True)
