from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.domain.entities.conversation import Conversation
from dm_service.domain.value_objects.ids import canonical_pair
from dm_service.infrastructure.db.mappers import conversation as mapper
from dm_service.infrastructure.db.models.conversation import ConversationModel


def _pair_clause(user_a: UUID, user_b: UUID):
    return or_(
        and_(ConversationModel.user_one_id == user_a, ConversationModel.user_two_id == user_b),
        and_(ConversationModel.user_one_id == user_b, ConversationModel.user_two_id == user_a),
    )


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        result = await self._session.get(ConversationModel, conversation_id)
        return mapper.model_to_entity(result) if result else None

    async def get_by_pair(self, user_a: UUID, user_b: UUID) -> Conversation | None:
        stmt = select(ConversationModel).where(_pair_clause(user_a, user_b)).limit(1)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_user(
        self,
        user_id: UUID,
        *,
        limit: int = 20,
        offset: int = 0,
        include_hidden: bool = False,
    ) -> list[Conversation]:
        as_one = ConversationModel.user_one_id == user_id
        as_two = ConversationModel.user_two_id == user_id
        if include_hidden:
            membership = or_(as_one, as_two)
        else:
            membership = or_(
                and_(as_one, ConversationModel.hidden_by_user_one.is_(False)),
                and_(as_two, ConversationModel.hidden_by_user_two.is_(False)),
            )
        stmt = (
            select(ConversationModel)
            .where(membership)
            .order_by(ConversationModel.last_message_at.desc().nullslast(), ConversationModel.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_or_get(self, user_one_id: UUID, user_two_id: UUID) -> Conversation:
        """Insert the canonical pair, converging on the existing row under a race."""
        user_one_id, user_two_id = canonical_pair(user_one_id, user_two_id)
        stmt = (
            pg_insert(ConversationModel)
            .values(user_one_id=user_one_id, user_two_id=user_two_id)
            .on_conflict_do_nothing(constraint="uq_conversation_pair")
            .returning(ConversationModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is not None:
            return mapper.model_to_entity(row)

        # Lost the race: the other insert already committed
        existing = await self._session.execute(
            select(ConversationModel).where(
                ConversationModel.user_one_id == user_one_id,
                ConversationModel.user_two_id == user_two_id,
            )
        )
        return mapper.model_to_entity(existing.scalar_one())

    async def touch_last_message(
        self,
        conversation_id: UUID,
        content: str,
        ts: datetime,
    ) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(
                last_message=content,
                last_message_at=ts,
                hidden_by_user_one=False,
                hidden_by_user_two=False,
            )
        )
        await self._session.execute(stmt)

    async def set_hidden(self, conversation_id: UUID, user_id: UUID, hidden: bool) -> None:
        conversation = await self._session.get(ConversationModel, conversation_id)
        if conversation is None:
            return
        column = (
            "hidden_by_user_one" if conversation.user_one_id == user_id else "hidden_by_user_two"
        )
        await self._session.execute(
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values({column: hidden})
        )
