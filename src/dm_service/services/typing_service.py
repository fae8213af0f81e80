from __future__ import annotations

import uuid

from dm_service.application.policies.permissions import assert_participant
from dm_service.application.ports.bus import EventPublisher
from dm_service.application.uow import UnitOfWork
from dm_service.domain.events.typing_changed import EVENT_TYPE, TypingChanged


async def send_typing(
    conversation_id: uuid.UUID,
    user_id: uuid.UUID,
    is_typing: bool,
    uow: UnitOfWork,
    publisher: EventPublisher,
    channel: str,
) -> None:
    """Publish an ephemeral typing indicator. Nothing is stored."""
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_participant(user_id, conversation)
    event = TypingChanged(conversation_id=conversation_id, user_id=user_id, is_typing=is_typing)
    await publisher.publish(channel, {"event_type": EVENT_TYPE, **event.to_payload()})
