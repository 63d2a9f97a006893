"""Shared test fixtures."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

from chat_relay.app import create_app
from chat_relay.application.state import ChatState, build_state
from chat_relay.config import Settings
from chat_relay.domain.entities.message import MessageDraft
from chat_relay.infrastructure.memory.ledger import MessageLedger

PASSWORD = "secret"


@dataclass
class FakeClock:
    """Manually advanced UTC clock."""

    current: datetime = field(
        default_factory=lambda: datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc),
    )

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "DELETE_PASSWORD": PASSWORD,
        "DELIVERY_MODE": "push",
        "LEDGER_MAX_RETAINED": 500,
        "LEDGER_TRIM_STRATEGY": "halve",
        "SWEEP_INTERVAL_SECONDS": 3600,
        "WS_HEARTBEAT_SECONDS": 3600,
    }
    values.update(overrides)
    return Settings(**values)


def make_draft(author: str = "Ann", body: str = "hi", **kwargs: Any) -> MessageDraft:
    return MessageDraft(author=author, body=body, **kwargs)


def make_ledger(clock: FakeClock, **kwargs: Any) -> MessageLedger:
    kwargs.setdefault("moderation_secret", PASSWORD)
    return MessageLedger(clock=clock, **kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def state(settings: Settings, clock: FakeClock) -> ChatState:
    return build_state(settings, clock)


@pytest.fixture
def app(settings: Settings, clock: FakeClock):
    return create_app(settings, clock)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    # One portal for HTTP calls and WebSocket sessions: they share an event loop.
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
