"""Process-wide chat state and its single serialization point."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from chat_relay.application.ports.clock import Clock, SystemClock
from chat_relay.config import Settings
from chat_relay.domain.value_objects.enums import DeliveryMode, TrimStrategy
from chat_relay.infrastructure.memory.attachment_store import AttachmentStore
from chat_relay.infrastructure.memory.ledger import MessageLedger
from chat_relay.infrastructure.memory.presence import PresenceTracker
from chat_relay.infrastructure.ws.dispatcher import BroadcastDispatcher


@dataclass
class ChatState:
    """Ledger, attachments, presence and subscribers for one process.

    Every mutation, and any read that must line up with one (history
    snapshot + subscribe), runs inside ``with state.lock:`` without awaiting,
    which gives one total order for appends, deletes, imports and sweeps.
    """

    settings: Settings
    ledger: MessageLedger
    attachments: AttachmentStore
    presence: PresenceTracker
    dispatcher: BroadcastDispatcher
    clock: Clock
    started_at: datetime
    lock: threading.RLock = field(default_factory=threading.RLock)

    @property
    def delivery_mode(self) -> DeliveryMode:
        return DeliveryMode(self.settings.DELIVERY_MODE)

    def uptime_seconds(self) -> int:
        return int((self.clock.now() - self.started_at).total_seconds())


def build_state(settings: Settings, clock: Clock | None = None) -> ChatState:
    clock = clock or SystemClock()
    return ChatState(
        settings=settings,
        ledger=MessageLedger(
            moderation_secret=settings.DELETE_PASSWORD,
            max_retained=settings.LEDGER_MAX_RETAINED,
            trim_strategy=TrimStrategy(settings.LEDGER_TRIM_STRATEGY),
            trim_target=settings.LEDGER_TRIM_TARGET,
            clock=clock,
        ),
        attachments=AttachmentStore(clock=clock),
        presence=PresenceTracker(
            idle_threshold=timedelta(seconds=settings.PRESENCE_IDLE_SECONDS),
            clock=clock,
        ),
        dispatcher=BroadcastDispatcher(queue_maxsize=settings.WS_QUEUE_MAXSIZE),
        clock=clock,
        started_at=clock.now(),
    )
