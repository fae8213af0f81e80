from __future__ import annotations

from typing import Protocol
from uuid import UUID

from dm_service.application.dto.conversation import ConversationPreview
from dm_service.domain.entities.message import Message

GET_OR_CREATE_CONVERSATION = "get_or_create_conversation"
GET_USER_CONVERSATIONS = "get_user_conversations"
GET_CONVERSATION_MESSAGES = "get_conversation_messages"
MARK_CONVERSATION_AS_READ = "mark_conversation_as_read"

ALL_PROCEDURES = frozenset(
    {
        GET_OR_CREATE_CONVERSATION,
        GET_USER_CONVERSATIONS,
        GET_CONVERSATION_MESSAGES,
        MARK_CONVERSATION_AS_READ,
    }
)


class MessagingProcedures(Protocol):
    """Atomic server-side operations, each one a single stored-function call.

    Implementations raise ``ProcedureUnavailableError`` when the function is
    not installed.
    """

    async def available(self) -> frozenset[str]: ...

    async def get_or_create_conversation(self, user_one_id: UUID, user_two_id: UUID) -> UUID: ...

    async def get_user_conversations(
        self, user_id: UUID, limit: int, offset: int
    ) -> list[ConversationPreview]: ...

    async def get_conversation_messages(
        self, conversation_id: UUID, user_id: UUID, limit: int, offset: int
    ) -> list[Message]:
        """Newest first, as the function returns them."""
        ...

    async def mark_conversation_as_read(self, user_id: UUID, conversation_id: UUID) -> None: ...
