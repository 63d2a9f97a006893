"""Periodic eviction of old attachments and (optionally) old messages."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta

from chat_relay.application.state import ChatState

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SweepResult:
    files: int
    messages: int


class RetentionSweeper:
    """Background task that evicts expired records under the state lock."""

    def __init__(self, state: ChatState) -> None:
        self._state = state
        self._task: asyncio.Task[None] | None = None

    def sweep_once(self) -> SweepResult:
        state = self._state
        cfg = state.settings
        with state.lock:
            now = state.clock.now()
            files = state.attachments.evict_older_than(timedelta(seconds=cfg.FILE_TTL_SECONDS), now)
            messages = 0
            if cfg.MESSAGE_TTL_SECONDS is not None:
                messages = len(
                    state.ledger.evict_older_than(timedelta(seconds=cfg.MESSAGE_TTL_SECONDS), now)
                )
        if files:
            logger.info("Cleaned up %d old files", files)
        if messages:
            logger.info("Cleaned up %d old messages", messages)
        return SweepResult(files=files, messages=messages)

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="retention-sweeper")
        logger.info(
            "Retention sweeper started (interval=%.0fs, file_ttl=%ds, message_ttl=%s)",
            self._state.settings.SWEEP_INTERVAL_SECONDS,
            self._state.settings.FILE_TTL_SECONDS,
            self._state.settings.MESSAGE_TTL_SECONDS,
        )

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Retention sweeper stopped")

    async def _run(self) -> None:
        interval = self._state.settings.SWEEP_INTERVAL_SECONDS
        while True:
            await asyncio.sleep(interval)
            try:
                self.sweep_once()
            except Exception:
                logger.exception("Retention sweep failed")
