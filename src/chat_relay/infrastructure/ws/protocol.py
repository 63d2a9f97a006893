"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # chat message | ping
    data: Any = None


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # chat message | chat history | message deleted | online users | ...
    data: Any = None
