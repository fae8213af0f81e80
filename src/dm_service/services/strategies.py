"""Procedure-backed and query-backed implementations of ``MessagingStrategy``."""
from __future__ import annotations

import logging
from uuid import UUID

from dm_service.application.dto.conversation import ConversationPreview
from dm_service.application.exceptions import ProcedureUnavailableError
from dm_service.application.policies.permissions import assert_participant
from dm_service.application.ports.strategy import MessagingStrategy
from dm_service.application.repositories.procedures import ALL_PROCEDURES
from dm_service.application.uow import UnitOfWork
from dm_service.domain.entities.message import Message
from dm_service.domain.entities.profile import ProfileLite
from dm_service.domain.value_objects.enums import AccessMode
from dm_service.domain.value_objects.ids import canonical_pair

logger = logging.getLogger(__name__)


class QueryStrategy:
    """Emulates the stored procedures with plain table reads and writes.

    Listing costs a few round trips per conversation, so callers keep pages small.
    """

    name = "queries"

    async def get_or_create_conversation(
        self, user_a: UUID, user_b: UUID, uow: UnitOfWork
    ) -> UUID:
        user_one_id, user_two_id = canonical_pair(user_a, user_b)
        existing = await uow.conversations.get_by_pair(user_one_id, user_two_id)
        if existing is not None:
            return existing.id
        conversation = await uow.conversations_w.create_or_get(user_one_id, user_two_id)
        logger.info(
            "Conversation %s ready for %s/%s", conversation.id, user_one_id, user_two_id,
        )
        return conversation.id

    async def list_conversations(
        self, user_id: UUID, limit: int, offset: int, uow: UnitOfWork
    ) -> list[ConversationPreview]:
        conversations = await uow.conversations.list_for_user(
            user_id, limit=limit, offset=offset,
        )
        previews: list[ConversationPreview] = []
        for conversation in conversations:
            other_id = conversation.other_participant(user_id)
            profile = await uow.profiles.get_lite(other_id)
            status = await uow.statuses.get(other_id)
            read_state = await uow.read_state.get(user_id, conversation.id)
            unread = await uow.messages.count_from_others_since(
                conversation.id,
                user_id,
                read_state.last_read_at if read_state else None,
            )
            previews.append(
                ConversationPreview(
                    conversation_id=conversation.id,
                    other_user=profile or ProfileLite.placeholder(other_id),
                    last_message=conversation.last_message,
                    last_message_at=conversation.last_message_at,
                    unread_count=unread,
                    is_online=status.is_online if status else False,
                    last_seen=status.last_seen if status else None,
                )
            )
        return previews

    async def fetch_messages(
        self,
        conversation_id: UUID,
        viewer_id: UUID,
        limit: int,
        offset: int,
        uow: UnitOfWork,
    ) -> list[Message]:
        conversation = await uow.conversations.get_by_id(conversation_id)
        assert_participant(viewer_id, conversation)
        return await uow.messages.list_messages(conversation_id, limit=limit, offset=offset)

    async def mark_read(self, user_id: UUID, conversation_id: UUID, uow: UnitOfWork) -> None:
        conversation = await uow.conversations.get_by_id(conversation_id)
        assert_participant(user_id, conversation)
        await uow.read_state_w.upsert_last_read(user_id, conversation_id)


class ProcedureStrategy:
    """One stored-function call per operation.

    If a function turns out to be missing at call time (dropped after the
    startup probe), the call is served by ``fallback`` instead.
    """

    name = "procedures"

    def __init__(self, fallback: QueryStrategy | None = None) -> None:
        self._fallback = fallback or QueryStrategy()

    def _degrade(self, exc: ProcedureUnavailableError) -> QueryStrategy:
        logger.warning("%s, serving from table queries", exc.detail)
        return self._fallback

    async def get_or_create_conversation(
        self, user_a: UUID, user_b: UUID, uow: UnitOfWork
    ) -> UUID:
        user_one_id, user_two_id = canonical_pair(user_a, user_b)
        try:
            return await uow.procedures.get_or_create_conversation(user_one_id, user_two_id)
        except ProcedureUnavailableError as exc:
            return await self._degrade(exc).get_or_create_conversation(user_a, user_b, uow)

    async def list_conversations(
        self, user_id: UUID, limit: int, offset: int, uow: UnitOfWork
    ) -> list[ConversationPreview]:
        try:
            return await uow.procedures.get_user_conversations(user_id, limit, offset)
        except ProcedureUnavailableError as exc:
            return await self._degrade(exc).list_conversations(user_id, limit, offset, uow)

    async def fetch_messages(
        self,
        conversation_id: UUID,
        viewer_id: UUID,
        limit: int,
        offset: int,
        uow: UnitOfWork,
    ) -> list[Message]:
        try:
            newest_first = await uow.procedures.get_conversation_messages(
                conversation_id, viewer_id, limit, offset,
            )
        except ProcedureUnavailableError as exc:
            return await self._degrade(exc).fetch_messages(
                conversation_id, viewer_id, limit, offset, uow,
            )
        return sorted(newest_first, key=lambda m: m.sort_key)

    async def mark_read(self, user_id: UUID, conversation_id: UUID, uow: UnitOfWork) -> None:
        try:
            await uow.procedures.mark_conversation_as_read(user_id, conversation_id)
        except ProcedureUnavailableError as exc:
            await self._degrade(exc).mark_read(user_id, conversation_id, uow)


def select_strategy(
    mode: AccessMode,
    available: frozenset[str],
) -> MessagingStrategy:
    """Pick the access strategy once, from configuration and the startup probe."""
    queries = QueryStrategy()
    if mode == AccessMode.QUERIES:
        return queries
    if mode == AccessMode.PROCEDURES:
        return ProcedureStrategy(queries)

    missing = ALL_PROCEDURES - available
    if missing:
        logger.info("Missing procedures %s, using table queries", ", ".join(sorted(missing)))
        return queries
    return ProcedureStrategy(queries)
