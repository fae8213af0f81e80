from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.domain.entities.user_status import UserStatus
from dm_service.infrastructure.db.models.user_status import UserStatusModel


class UserStatusReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: UUID) -> UserStatus | None:
        stmt = select(UserStatusModel).where(UserStatusModel.user_id == user_id)
        model = (await self._session.execute(stmt)).scalar_one_or_none()
        if model is None:
            return None
        return UserStatus(
            user_id=model.user_id,
            is_online=model.is_online,
            last_seen=model.last_seen,
            status_message=model.status_message,
        )


class UserStatusWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def set_online(self, user_id: UUID, online: bool) -> None:
        stmt = (
            pg_insert(UserStatusModel)
            .values(user_id=user_id, is_online=online, last_seen=func.now())
            .on_conflict_do_update(
                index_elements=[UserStatusModel.user_id],
                set_={"is_online": online, "last_seen": func.now()},
            )
        )
        await self._session.execute(stmt)
