from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError

from dm_service.application.dto.conversation import ConversationPreview
from dm_service.application.exceptions import AppError, ValidationError
from dm_service.application.policies.permissions import assert_participant
from dm_service.application.ports.strategy import MessagingStrategy
from dm_service.application.uow import UnitOfWork

logger = logging.getLogger(__name__)


async def get_or_create_conversation(
    user_id: uuid.UUID,
    other_user_id: uuid.UUID,
    uow: UnitOfWork,
    strategy: MessagingStrategy,
) -> uuid.UUID:
    """Return the single conversation id for an unordered pair of users.

    Repeated calls, in either argument order, return the same id.
    """
    if user_id == other_user_id:
        raise ValidationError("Cannot start a conversation with yourself")
    conversation_id = await strategy.get_or_create_conversation(user_id, other_user_id, uow)
    await uow.commit()
    return conversation_id


async def list_conversations(
    user_id: uuid.UUID,
    limit: int,
    offset: int,
    uow: UnitOfWork,
    strategy: MessagingStrategy,
) -> list[ConversationPreview]:
    """Inbox page ordered by most recent activity.

    Store failures degrade to an empty page.
    """
    try:
        return await strategy.list_conversations(user_id, limit, max(offset, 0), uow)
    except (SQLAlchemyError, OSError):
        logger.exception("Listing conversations failed for user=%s", user_id)
        return []


async def mark_conversation_read(
    user_id: uuid.UUID,
    conversation_id: uuid.UUID,
    uow: UnitOfWork,
    strategy: MessagingStrategy,
) -> None:
    """Move the user's read cursor to now. Best-effort: failures are only logged."""
    try:
        await strategy.mark_read(user_id, conversation_id, uow)
        await uow.commit()
    except AppError as exc:
        logger.warning(
            "mark_read rejected for user=%s conversation=%s: %s",
            user_id, conversation_id, exc.detail,
        )
    except (SQLAlchemyError, OSError):
        logger.exception("mark_read failed for user=%s conversation=%s", user_id, conversation_id)


async def hide_conversation(
    user_id: uuid.UUID,
    conversation_id: uuid.UUID,
    uow: UnitOfWork,
) -> None:
    """Hide a conversation from the user's inbox until the next message arrives."""
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_participant(user_id, conversation)
    await uow.conversations_w.set_hidden(conversation_id, user_id, True)
    await uow.commit()
