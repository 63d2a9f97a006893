"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request

from chat_relay.application.state import ChatState
from chat_relay.domain.value_objects.enums import DeliveryMode


def get_state(request: Request) -> ChatState:
    return request.app.state.chat


StateDep = Annotated[ChatState, Depends(get_state)]


def get_client_key(request: Request, state: StateDep) -> str | None:
    """Presence key for HTTP callers: first forwarded hop, else peer address.

    Push mode counts ``/ws`` sessions only, so HTTP calls get no key there.
    """
    if state.delivery_mode is DeliveryMode.PUSH:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


ClientKey = Annotated[str | None, Depends(get_client_key)]

DeletePassword = Annotated[str | None, Header(alias="X-Delete-Password")]
