from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError

from dm_service.application.exceptions import ValidationError
from dm_service.application.policies.permissions import assert_participant
from dm_service.application.ports.strategy import MessagingStrategy
from dm_service.application.uow import UnitOfWork
from dm_service.domain.entities.message import Message
from dm_service.domain.events.message_created import EVENT_TYPE, MessageCreated

logger = logging.getLogger(__name__)


async def fetch_messages(
    conversation_id: uuid.UUID,
    viewer_id: uuid.UUID,
    limit: int,
    offset: int,
    uow: UnitOfWork,
    strategy: MessagingStrategy,
) -> list[Message]:
    """Offset page counted back from the newest message, in (created_at, id) order.

    Authorization errors propagate; store failures degrade to an empty page.
    """
    try:
        return await strategy.fetch_messages(
            conversation_id, viewer_id, limit, max(offset, 0), uow,
        )
    except (SQLAlchemyError, OSError):
        logger.exception("Fetching messages failed for conversation=%s", conversation_id)
        return []


async def send_message(
    conversation_id: uuid.UUID,
    sender_id: uuid.UUID,
    content: str,
    uow: UnitOfWork,
) -> Message:
    """Store one message and return the persisted row.

    Content is stored as given; only all-whitespace content is rejected.
    No idempotency key: a caller retrying a failed send may store it twice.
    """
    if not (content or "").strip():
        raise ValidationError("Message content must not be empty")

    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_participant(sender_id, conversation)

    msg = await uow.messages_w.create(conversation_id, sender_id, content)
    await uow.conversations_w.touch_last_message(conversation_id, msg.content, msg.created_at)
    await uow.outbox.add(
        EVENT_TYPE,
        MessageCreated.from_message(msg).to_payload(),
        aggregate_id=conversation_id,
    )
    await uow.commit()
    return msg
