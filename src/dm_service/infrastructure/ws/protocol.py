"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel

from dm_service.domain.entities.message import Message
from dm_service.domain.events.message_created import MessageCreated


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # subscribe | unsubscribe | subscribe_inbox | ping
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # message.created | inbox.changed | typing | pong | error
    data: dict[str, Any] = {}

    @classmethod
    def message_created(cls, message: Message) -> WsOutbound:
        return cls(type="message.created", data=MessageCreated.from_message(message).to_payload())

    @classmethod
    def inbox_changed(cls) -> WsOutbound:
        return cls(type="inbox.changed")

    @classmethod
    def typing(cls, conversation_id: UUID, user_id: UUID, is_typing: bool) -> WsOutbound:
        return cls(
            type="typing",
            data={
                "conversation_id": str(conversation_id),
                "user_id": str(user_id),
                "is_typing": is_typing,
            },
        )

    @classmethod
    def error(cls, code: str, **extra: Any) -> WsOutbound:
        return cls(type="error", data={"code": code, **extra})
