from __future__ import annotations

from typing import Protocol
from uuid import UUID

from dm_service.domain.entities.user_status import UserStatus


class UserStatusReader(Protocol):
    async def get(self, user_id: UUID) -> UserStatus | None: ...


class UserStatusWriter(Protocol):
    async def set_online(self, user_id: UUID, online: bool) -> None:
        """Upsert the flag; ``last_seen`` is stamped by the store."""
        ...
