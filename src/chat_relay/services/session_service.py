"""Push-mode session lifecycle: subscribe, heartbeat, disconnect."""
from __future__ import annotations

import logging

from chat_relay.application.state import ChatState
from chat_relay.domain.value_objects.enums import EventType
from chat_relay.infrastructure.memory import mappers
from chat_relay.infrastructure.ws.dispatcher import Subscription
from chat_relay.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


async def open_session(state: ChatState, session_key: str, client_ip: str | None) -> Subscription:
    """Subscribe a session with the full history queued first.

    Snapshot and registration happen under the state lock, so the session
    sees every later append exactly once and nothing twice.
    """
    with state.lock:
        history = [mappers.entity_to_payload(m) for m in state.ledger.list_all()]
        state.presence.touch(session_key)
        sub = state.dispatcher.subscribe(
            session_key,
            initial=[
                WsOutbound(type=EventType.CHAT_HISTORY.value, data=history),
                WsOutbound(type=EventType.USER_IP.value, data=client_ip),
            ],
        )
        state.dispatcher.publish(EventType.ONLINE_USERS, state.presence.active_count())
    logger.info("Session %s opened from %s (history=%d)", session_key, client_ip, len(history))
    return sub


async def close_session(state: ChatState, session_key: str) -> None:
    with state.lock:
        state.dispatcher.unsubscribe(session_key)
        state.presence.remove(session_key)
        state.dispatcher.publish(EventType.ONLINE_USERS, state.presence.active_count())
    logger.info("Session %s closed", session_key)


async def heartbeat(state: ChatState, session_key: str) -> bool:
    """Refresh presence and push the uptime counter; ``False`` once unsubscribed."""
    with state.lock:
        state.presence.touch(session_key)
        return state.dispatcher.send_to(session_key, EventType.SERVER_UPTIME, state.uptime_seconds())
