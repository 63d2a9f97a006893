"""Derived "who is online" set, pruned lazily on each touch/query."""
from __future__ import annotations

from datetime import datetime, timedelta

from chat_relay.application.ports.clock import Clock, SystemClock


class PresenceTracker:
    def __init__(
        self,
        idle_threshold: timedelta = timedelta(seconds=30),
        clock: Clock | None = None,
    ) -> None:
        self._idle_threshold = idle_threshold
        self._clock = clock or SystemClock()
        self._last_seen: dict[str, datetime] = {}

    def touch(self, key: str, now: datetime | None = None) -> None:
        now = now or self._clock.now()
        self._last_seen[key] = now
        self._prune(now, self._idle_threshold)

    def remove(self, key: str) -> bool:
        return self._last_seen.pop(key, None) is not None

    def active_count(
        self,
        now: datetime | None = None,
        idle_threshold: timedelta | None = None,
    ) -> int:
        self._prune(now or self._clock.now(), idle_threshold or self._idle_threshold)
        return len(self._last_seen)

    def _prune(self, now: datetime, idle_threshold: timedelta) -> None:
        cutoff = now - idle_threshold
        stale = [key for key, seen in self._last_seen.items() if seen <= cutoff]
        for key in stale:
            del self._last_seen[key]
