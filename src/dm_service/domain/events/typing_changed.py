from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID

EVENT_TYPE = "dm.typing"


@dataclass(frozen=True, slots=True)
class TypingChanged:
    conversation_id: UUID
    user_id: UUID
    is_typing: bool

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> TypingChanged:
        return cls(
            conversation_id=UUID(str(data["conversation_id"])),
            user_id=UUID(str(data["user_id"])),
            is_typing=bool(data["is_typing"]),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "conversation_id": str(self.conversation_id),
            "user_id": str(self.user_id),
            "is_typing": self.is_typing,
        }
