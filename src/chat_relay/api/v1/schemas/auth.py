from __future__ import annotations

from chat_relay.api.v1.schemas.common import CamelModel


class LoginRequest(CamelModel):
    name: str = ""
