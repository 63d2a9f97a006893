from __future__ import annotations

from fastapi import APIRouter, Query

from chat_relay.api.deps import ClientKey, DeletePassword, StateDep
from chat_relay.api.v1.schemas.common import StatusResponse
from chat_relay.api.v1.schemas.message import (
    ChatFeedResponse,
    DeleteMessageRequest,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from chat_relay.application.dto.message import ChatFeedDTO
from chat_relay.services import message_service

router = APIRouter(tags=["messages"])


def _feed_response(feed: ChatFeedDTO) -> ChatFeedResponse:
    return ChatFeedResponse(
        messages=[MessageResponse.model_validate(m) for m in feed.messages],
        online_count=feed.online_count,
        server_uptime_seconds=feed.server_uptime_seconds,
        last_update=feed.last_update,
    )


@router.get("/chat-history", response_model=ChatFeedResponse)
async def chat_history(state: StateDep, client_key: ClientKey) -> ChatFeedResponse:
    feed = await message_service.history(state, client_key)
    return _feed_response(feed)


@router.get("/chat-updates", response_model=ChatFeedResponse)
async def chat_updates(
    state: StateDep,
    client_key: ClientKey,
    since: str | None = Query(None, description="Epoch milliseconds or ISO-8601 timestamp"),
    after_id: str | None = Query(None, alias="afterId"),
) -> ChatFeedResponse:
    feed = await message_service.updates(state, client_key, since=since, after_id=after_id)
    return _feed_response(feed)


@router.post("/send-message", response_model=SendMessageResponse)
async def send_message(
    body: SendMessageRequest,
    state: StateDep,
    client_key: ClientKey,
) -> SendMessageResponse:
    msg = await message_service.send_message(state, body.to_dto(), client_key)
    return SendMessageResponse(message=MessageResponse.model_validate(msg))


@router.post("/delete-message", response_model=StatusResponse)
async def delete_message(body: DeleteMessageRequest, state: StateDep) -> StatusResponse:
    await message_service.delete_message(
        state,
        password=body.password,
        message_id=body.id,
        timestamp=body.timestamp,
    )
    return StatusResponse(success=True, message="Message deleted")


@router.delete("/api/messages/{message_id}", response_model=StatusResponse)
async def delete_message_by_id(
    message_id: str,
    state: StateDep,
    password: DeletePassword = None,
) -> StatusResponse:
    await message_service.delete_message(state, password=password, message_id=message_id)
    return StatusResponse(success=True, message="Message deleted")
