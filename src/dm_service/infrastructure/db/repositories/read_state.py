from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.domain.entities.read_state import ReadState
from dm_service.infrastructure.db.models.read_state import ReadStateModel


class ReadStateReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: UUID, conversation_id: UUID) -> ReadState | None:
        stmt = select(ReadStateModel).where(
            ReadStateModel.user_id == user_id,
            ReadStateModel.conversation_id == conversation_id,
        )
        model = (await self._session.execute(stmt)).scalar_one_or_none()
        if model is None:
            return None
        return ReadState(
            user_id=model.user_id,
            conversation_id=model.conversation_id,
            last_read_at=model.last_read_at,
        )


class ReadStateWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert_last_read(
        self,
        user_id: UUID,
        conversation_id: UUID,
    ) -> None:
        stmt = (
            pg_insert(ReadStateModel)
            .values(
                user_id=user_id,
                conversation_id=conversation_id,
                last_read_at=func.now(),
            )
            .on_conflict_do_update(
                constraint="uq_conversation_read_member",
                set_={"last_read_at": func.now()},
            )
        )
        await self._session.execute(stmt)
