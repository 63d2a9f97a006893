"""Root conftest: test environment defaults, applied before chat_relay.config is imported."""
from __future__ import annotations

import os

_TEST_ENV = {
    "DELETE_PASSWORD": "secret",
    "LOG_LEVEL": "DEBUG",
    "SWEEP_INTERVAL_SECONDS": "3600",
    "WS_HEARTBEAT_SECONDS": "3600",
}

for _key, _value in _TEST_ENV.items():
    os.environ.setdefault(_key, _value)
