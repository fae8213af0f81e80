from __future__ import annotations

from typing import Protocol
from uuid import UUID

from dm_service.application.dto.conversation import ConversationPreview
from dm_service.application.uow import UnitOfWork
from dm_service.domain.entities.message import Message


class MessagingStrategy(Protocol):
    """How directory and timeline reads reach the store.

    One implementation calls atomic stored procedures, the other emulates them
    with plain table queries. The choice is made once at startup.
    """

    name: str

    async def get_or_create_conversation(
        self, user_a: UUID, user_b: UUID, uow: UnitOfWork
    ) -> UUID: ...

    async def list_conversations(
        self, user_id: UUID, limit: int, offset: int, uow: UnitOfWork
    ) -> list[ConversationPreview]: ...

    async def fetch_messages(
        self,
        conversation_id: UUID,
        viewer_id: UUID,
        limit: int,
        offset: int,
        uow: UnitOfWork,
    ) -> list[Message]:
        """Page counted back from the newest message, returned oldest first."""
        ...

    async def mark_read(self, user_id: UUID, conversation_id: UUID, uow: UnitOfWork) -> None: ...
