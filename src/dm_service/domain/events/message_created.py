from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from dm_service.domain.entities.message import Message

EVENT_TYPE = "dm.message_created"


@dataclass(frozen=True, slots=True)
class MessageCreated:
    message_id: UUID
    conversation_id: UUID
    sender_id: UUID
    content: str
    created_at: datetime

    @classmethod
    def from_message(cls, message: Message) -> MessageCreated:
        return cls(
            message_id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            content=message.content,
            created_at=message.created_at,
        )

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> MessageCreated:
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            message_id=UUID(str(data["message_id"])),
            conversation_id=UUID(str(data["conversation_id"])),
            sender_id=UUID(str(data["sender_id"])),
            content=data["content"],
            created_at=created_at,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "message_id": str(self.message_id),
            "conversation_id": str(self.conversation_id),
            "sender_id": str(self.sender_id),
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }

    def to_message(self) -> Message:
        return Message(
            id=self.message_id,
            conversation_id=self.conversation_id,
            sender_id=self.sender_id,
            content=self.content,
            created_at=self.created_at,
        )
