"""In-process fan-out of chat events to push-mode sessions."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from chat_relay.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Subscription:
    """One session's ordered outbound stream.

    ``None`` in the queue marks the end of the stream.
    """

    key: str
    queue: asyncio.Queue[str | None] = field(default_factory=asyncio.Queue)
    dropped: bool = False

    def drain_nowait(self) -> list[str]:
        """Pop everything queued so far (used by tests and shutdown)."""
        items: list[str] = []
        while not self.queue.empty():
            item = self.queue.get_nowait()
            if item is not None:
                items.append(item)
        return items


class BroadcastDispatcher:
    """Delivers each event to every current subscriber, in publish order.

    All methods are synchronous and never suspend, so a caller holding the
    state lock can snapshot history, subscribe and publish without another
    mutation slipping in between. A subscriber that falls more than
    ``queue_maxsize`` events behind is dropped instead of being skipped.
    """

    def __init__(self, queue_maxsize: int = 1000) -> None:
        self._queue_maxsize = queue_maxsize
        self._subscribers: dict[str, Subscription] = {}

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, key: str, initial: Iterable[WsOutbound] = ()) -> Subscription:
        """Register ``key``; ``initial`` events are queued ahead of any later publish."""
        if key in self._subscribers:
            self.unsubscribe(key)
        sub = Subscription(key=key)
        for event in initial:
            sub.queue.put_nowait(event.model_dump_json())
        self._subscribers[key] = sub
        logger.debug("Subscribed %s (total=%d)", key, len(self._subscribers))
        return sub

    def unsubscribe(self, key: str) -> None:
        sub = self._subscribers.pop(key, None)
        if sub is not None:
            sub.queue.put_nowait(None)
            logger.debug("Unsubscribed %s (total=%d)", key, len(self._subscribers))

    def publish(self, event_type: str, data: Any) -> int:
        raw = WsOutbound(type=str(event_type), data=data).model_dump_json()
        lagging: list[Subscription] = []
        for sub in self._subscribers.values():
            if sub.queue.qsize() >= self._queue_maxsize:
                lagging.append(sub)
                continue
            sub.queue.put_nowait(raw)
        for sub in lagging:
            logger.warning("Dropping lagging subscriber %s (queued=%d)", sub.key, sub.queue.qsize())
            sub.dropped = True
            self.unsubscribe(sub.key)
        return len(self._subscribers)

    def send_to(self, key: str, event_type: str, data: Any) -> bool:
        sub = self._subscribers.get(key)
        if sub is None:
            return False
        sub.queue.put_nowait(WsOutbound(type=str(event_type), data=data).model_dump_json())
        return True

    def close_all(self) -> None:
        for key in list(self._subscribers):
            self.unsubscribe(key)
