from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from dm_service.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: UUID) -> Conversation | None: ...

    async def get_by_pair(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        """Find the conversation for a pair, regardless of column order."""
        ...

    async def list_for_user(
        self,
        user_id: UUID,
        *,
        limit: int = 20,
        offset: int = 0,
        include_hidden: bool = False,
    ) -> list[Conversation]:
        """Participant conversations, most recent activity first, nulls last."""
        ...


class ConversationWriter(Protocol):
    async def create_or_get(self, user_one_id: UUID, user_two_id: UUID) -> Conversation:
        """Insert a canonical pair; on unique conflict return the existing row."""
        ...

    async def touch_last_message(
        self, conversation_id: UUID, content: str, ts: datetime
    ) -> None:
        """Record the latest message and clear both hidden flags."""
        ...

    async def set_hidden(
        self, conversation_id: UUID, user_id: UUID, hidden: bool
    ) -> None: ...
