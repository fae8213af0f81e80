from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.domain.entities.profile import DEFAULT_DISPLAY_NAME, ProfileLite
from dm_service.infrastructure.db.models.profile import ProfileModel


class ProfileReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_lite(self, user_id: UUID) -> ProfileLite | None:
        stmt = select(ProfileModel).where(ProfileModel.user_id == user_id)
        model = (await self._session.execute(stmt)).scalar_one_or_none()
        if model is None:
            return None
        return ProfileLite(
            user_id=model.user_id,
            name=model.name or DEFAULT_DISPLAY_NAME,
            profile_picture=model.profile_picture,
        )
