from __future__ import annotations

from datetime import datetime


class MonotonicIdGenerator:
    """Millisecond-derived integer ids that never repeat or go backwards.

    Two calls landing in the same millisecond (or a clock stepping back)
    fall through to ``last + 1``, so ids stay unique and ordered for the
    lifetime of the process. Ids only approximate creation time; anything
    age-based reads the record's own timestamp instead.
    """

    def __init__(self) -> None:
        self._last = 0

    @property
    def last(self) -> int:
        return self._last

    def next_id(self, now: datetime) -> int:
        candidate = int(now.timestamp() * 1000)
        self._last = max(candidate, self._last + 1)
        return self._last

    def advance_past(self, value: int) -> None:
        self._last = max(self._last, value)
