from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from dm_service.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        limit: int = 40,
        offset: int = 0,
    ) -> list[Message]:
        """Page counted back from the newest message, returned oldest first."""
        ...

    async def count_from_others_since(
        self,
        conversation_id: UUID,
        user_id: UUID,
        since: datetime | None,
    ) -> int:
        """Messages not authored by ``user_id`` created after ``since`` (all when None)."""
        ...


class MessageWriter(Protocol):
    async def create(
        self, conversation_id: UUID, sender_id: UUID, content: str
    ) -> Message:
        """Insert one message; id and created_at are assigned by the store."""
        ...
