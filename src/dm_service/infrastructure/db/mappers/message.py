from __future__ import annotations

from typing import Any

from dm_service.domain.entities.message import Message
from dm_service.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_id=model.sender_id,
        content=model.content,
        created_at=model.created_at,
    )


def row_to_entity(row: Any) -> Message:
    """Map a ``get_conversation_messages`` result row (``message_id`` column)."""
    return Message(
        id=row.message_id,
        conversation_id=row.conversation_id,
        sender_id=row.sender_id,
        content=row.content,
        created_at=row.created_at,
    )
