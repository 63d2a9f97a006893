from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["*"]
    STATIC_DIR: str | None = None

    DELETE_PASSWORD: str = "12345"

    DELIVERY_MODE: Literal["push", "poll"] = "push"

    LEDGER_MAX_RETAINED: int = 500
    LEDGER_TRIM_STRATEGY: Literal["halve", "fifo", "never"] = "halve"
    LEDGER_TRIM_TARGET: int | None = None
    MESSAGE_TTL_SECONDS: int | None = None

    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    FILE_TTL_SECONDS: int = 24 * 60 * 60
    SWEEP_INTERVAL_SECONDS: float = 60 * 60

    PRESENCE_IDLE_SECONDS: float = 30.0

    WS_HEARTBEAT_SECONDS: float = 15.0
    WS_QUEUE_MAXSIZE: int = 1000

    BROADCAST_DELETIONS: bool = True
    CASCADE_ATTACHMENT_DELETE: bool = False

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
