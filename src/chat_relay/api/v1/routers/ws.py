from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from chat_relay.api.middleware.correlation_id import correlation_id_ctx
from chat_relay.api.v1.schemas.message import SendMessageRequest
from chat_relay.application.exceptions import AppError
from chat_relay.application.state import ChatState
from chat_relay.domain.value_objects.enums import EventType
from chat_relay.infrastructure.ws.dispatcher import Subscription
from chat_relay.infrastructure.ws.protocol import WsInbound
from chat_relay.services import message_service, session_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

# 1013 "try again later": the session fell too far behind the broadcast.
CLOSE_LAGGING = 1013


@router.websocket("/ws")
async def ws_chat(websocket: WebSocket) -> None:
    state: ChatState = websocket.app.state.chat
    await websocket.accept()

    session_key = uuid.uuid4().hex
    # Session logs, including its writer and heartbeat tasks, carry the session key.
    correlation_id_ctx.set(session_key)
    client_ip = websocket.client.host if websocket.client else None
    sub = await session_service.open_session(state, session_key, client_ip)

    writer_task = asyncio.create_task(
        _writer(websocket, sub), name=f"ws-writer-{session_key}",
    )
    heartbeat_task = asyncio.create_task(
        _heartbeat(state, session_key), name=f"ws-heartbeat-{session_key}",
    )
    try:
        await _read_loop(websocket, state, session_key)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", session_key)
    finally:
        heartbeat_task.cancel()
        await session_service.close_session(state, session_key)
        writer_task.cancel()
        await asyncio.gather(writer_task, heartbeat_task, return_exceptions=True)


async def _writer(ws: WebSocket, sub: Subscription) -> None:
    """Sole sender on the socket, so frames leave in queue order."""
    while True:
        raw = await sub.queue.get()
        if raw is None:
            break
        await ws.send_text(raw)
    if sub.dropped:
        await ws.close(code=CLOSE_LAGGING, reason="Subscriber too slow")


async def _heartbeat(state: ChatState, session_key: str) -> None:
    interval = state.settings.WS_HEARTBEAT_SECONDS
    while True:
        await asyncio.sleep(interval)
        if not await session_service.heartbeat(state, session_key):
            return


async def _read_loop(ws: WebSocket, state: ChatState, session_key: str) -> None:
    dispatcher = state.dispatcher
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except PydanticValidationError:
            dispatcher.send_to(session_key, EventType.ERROR, {"code": "invalid_payload"})
            continue

        if msg.type == EventType.PING:
            dispatcher.send_to(session_key, EventType.PONG, {})

        elif msg.type == EventType.CHAT_MESSAGE:
            await _handle_send(state, session_key, msg.data)

        else:
            dispatcher.send_to(
                session_key, EventType.ERROR, {"code": "unknown_type", "type": msg.type},
            )


async def _handle_send(state: ChatState, session_key: str, data: object) -> None:
    try:
        payload = SendMessageRequest.model_validate(data or {})
        await message_service.send_message(state, payload.to_dto(), session_key)
    except PydanticValidationError:
        state.dispatcher.send_to(session_key, EventType.ERROR, {"code": "invalid_data"})
    except AppError as exc:
        state.dispatcher.send_to(
            session_key, EventType.ERROR, {"code": "send_failed", "detail": exc.detail},
        )
