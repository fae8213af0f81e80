from __future__ import annotations

from dm_service.domain.entities.conversation import Conversation
from dm_service.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        user_one_id=model.user_one_id,
        user_two_id=model.user_two_id,
        last_message=model.last_message,
        last_message_at=model.last_message_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
        hidden_by_user_one=model.hidden_by_user_one,
        hidden_by_user_two=model.hidden_by_user_two,
    )
