"""Calls into the optional stored functions installed by ``scripts/init_db``."""
from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.application.dto.conversation import ConversationPreview
from dm_service.application.exceptions import (
    ForbiddenError,
    NotFoundError,
    ProcedureUnavailableError,
)
from dm_service.application.repositories.procedures import (
    ALL_PROCEDURES,
    GET_CONVERSATION_MESSAGES,
    GET_OR_CREATE_CONVERSATION,
    GET_USER_CONVERSATIONS,
    MARK_CONVERSATION_AS_READ,
)
from dm_service.domain.entities.message import Message
from dm_service.domain.entities.profile import DEFAULT_DISPLAY_NAME, ProfileLite
from dm_service.infrastructure.db.mappers import message as message_mapper

logger = logging.getLogger(__name__)

UNDEFINED_FUNCTION = "42883"
INSUFFICIENT_PRIVILEGE = "42501"
NO_DATA_FOUND = "P0002"


def _sqlstate(exc: DBAPIError) -> str | None:
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


class MessagingProceduresRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def available(self) -> frozenset[str]:
        stmt = text(
            "SELECT DISTINCT p.proname FROM pg_catalog.pg_proc p "
            "JOIN pg_catalog.pg_namespace n ON n.oid = p.pronamespace "
            "WHERE n.nspname = current_schema() AND p.proname = ANY(:names)"
        )
        result = await self._session.execute(stmt, {"names": sorted(ALL_PROCEDURES)})
        return frozenset(result.scalars().all())

    async def _call(self, procedure: str, sql: str, params: dict[str, Any]):
        # Savepoint so a missing function does not abort the surrounding transaction
        try:
            async with self._session.begin_nested():
                return await self._session.execute(text(sql), params)
        except DBAPIError as exc:
            code = _sqlstate(exc)
            if code == UNDEFINED_FUNCTION:
                raise ProcedureUnavailableError(procedure) from exc
            if code == INSUFFICIENT_PRIVILEGE:
                raise ForbiddenError("Not a participant of this conversation") from exc
            if code == NO_DATA_FOUND:
                raise NotFoundError("Conversation not found") from exc
            logger.debug("%s failed with sqlstate=%s", procedure, code)
            raise

    async def get_or_create_conversation(self, user_one_id: UUID, user_two_id: UUID) -> UUID:
        result = await self._call(
            GET_OR_CREATE_CONVERSATION,
            "SELECT get_or_create_conversation(:p_user_one_id, :p_user_two_id)",
            {"p_user_one_id": user_one_id, "p_user_two_id": user_two_id},
        )
        return UUID(str(result.scalar_one()))

    async def get_user_conversations(
        self, user_id: UUID, limit: int, offset: int
    ) -> list[ConversationPreview]:
        result = await self._call(
            GET_USER_CONVERSATIONS,
            "SELECT * FROM get_user_conversations(:p_user_id, :p_limit, :p_offset)",
            {"p_user_id": user_id, "p_limit": limit, "p_offset": offset},
        )
        return [
            ConversationPreview(
                conversation_id=row.conversation_id,
                other_user=ProfileLite(
                    user_id=row.other_user_id,
                    name=row.other_user_name or DEFAULT_DISPLAY_NAME,
                    profile_picture=row.other_user_profile_picture,
                ),
                last_message=row.last_message,
                last_message_at=row.last_message_at,
                unread_count=int(row.unread_count or 0),
                is_online=bool(row.other_user_is_online),
                last_seen=row.other_user_last_seen,
            )
            for row in result
        ]

    async def get_conversation_messages(
        self, conversation_id: UUID, user_id: UUID, limit: int, offset: int
    ) -> list[Message]:
        result = await self._call(
            GET_CONVERSATION_MESSAGES,
            "SELECT * FROM get_conversation_messages("
            ":p_conversation_id, :p_user_id, :p_limit, :p_offset)",
            {
                "p_conversation_id": conversation_id,
                "p_user_id": user_id,
                "p_limit": limit,
                "p_offset": offset,
            },
        )
        return [message_mapper.row_to_entity(row) for row in result]

    async def mark_conversation_as_read(self, user_id: UUID, conversation_id: UUID) -> None:
        await self._call(
            MARK_CONVERSATION_AS_READ,
            "SELECT mark_conversation_as_read(:p_user_id, :p_conversation_id)",
            {"p_user_id": user_id, "p_conversation_id": conversation_id},
        )
