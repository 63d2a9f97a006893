from __future__ import annotations

from enum import StrEnum


class TrimStrategy(StrEnum):
    HALVE = "halve"
    FIFO = "fifo"
    NEVER = "never"


class DeliveryMode(StrEnum):
    PUSH = "push"
    POLL = "poll"


class EventType(StrEnum):
    CHAT_MESSAGE = "chat message"
    CHAT_HISTORY = "chat history"
    MESSAGE_DELETED = "message deleted"
    ONLINE_USERS = "online users"
    SERVER_UPTIME = "server uptime"
    USER_IP = "user ip"
    PING = "ping"
    PONG = "pong"
    ERROR = "error"
