from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Default wall-clock implementation (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def to_millis(ts: datetime) -> datetime:
    """Drop sub-millisecond precision; epoch-ms poll cursors must compare exactly."""
    return ts.replace(microsecond=ts.microsecond // 1000 * 1000)
