from __future__ import annotations

from datetime import timedelta

from chat_relay.infrastructure.memory.presence import PresenceTracker


def test_touch_counts_distinct_keys(clock):
    presence = PresenceTracker(clock=clock)

    presence.touch("10.0.0.1")
    presence.touch("10.0.0.2")
    presence.touch("10.0.0.1")

    assert presence.active_count() == 2


def test_idle_entries_expire_on_query(clock):
    presence = PresenceTracker(idle_threshold=timedelta(seconds=30), clock=clock)
    presence.touch("a")
    clock.advance(seconds=20)
    presence.touch("b")
    clock.advance(seconds=10)

    assert presence.active_count() == 1


def test_touch_refreshes_last_seen(clock):
    presence = PresenceTracker(idle_threshold=timedelta(seconds=30), clock=clock)
    presence.touch("a")
    clock.advance(seconds=25)
    presence.touch("a")
    clock.advance(seconds=25)

    assert presence.active_count() == 1


def test_query_threshold_override(clock):
    presence = PresenceTracker(idle_threshold=timedelta(seconds=30), clock=clock)
    presence.touch("a")
    clock.advance(seconds=5)

    assert presence.active_count(idle_threshold=timedelta(seconds=1)) == 0


def test_remove(clock):
    presence = PresenceTracker(clock=clock)
    presence.touch("session-1")

    assert presence.remove("session-1") is True
    assert presence.remove("session-1") is False
    assert presence.active_count() == 0
