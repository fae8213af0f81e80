from __future__ import annotations

from typing import Protocol
from uuid import UUID

from dm_service.domain.entities.read_state import ReadState


class ReadStateReader(Protocol):
    async def get(self, user_id: UUID, conversation_id: UUID) -> ReadState | None: ...


class ReadStateWriter(Protocol):
    async def upsert_last_read(self, user_id: UUID, conversation_id: UUID) -> None:
        """Move the cursor to the store's current time.

        Message timestamps come from the same clock, so unread counts never
        depend on the application host's clock.
        """
        ...
