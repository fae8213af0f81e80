from __future__ import annotations

from typing import Protocol
from uuid import UUID

from dm_service.domain.entities.profile import ProfileLite


class ProfileReader(Protocol):
    async def get_lite(self, user_id: UUID) -> ProfileLite | None: ...
