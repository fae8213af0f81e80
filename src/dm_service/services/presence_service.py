from __future__ import annotations

import logging
import uuid
from collections import Counter

from sqlalchemy.exc import SQLAlchemyError

from dm_service.services.conversation_session import UoWFactory

logger = logging.getLogger(__name__)


async def set_presence(user_id: uuid.UUID, online: bool, uow_factory: UoWFactory) -> None:
    """Flip the user's online flag and stamp ``last_seen``. Best-effort."""
    try:
        async with uow_factory() as uow:
            await uow.statuses_w.set_online(user_id, online)
            await uow.commit()
    except (SQLAlchemyError, OSError):
        logger.exception("Presence update failed for user=%s online=%s", user_id, online)


class PresenceTracker:
    """Counts open sockets per user in this process.

    The first socket marks the user online; closing the last one marks them
    offline. Sockets held by other processes are not visible here.
    """

    def __init__(self) -> None:
        self._sockets: Counter[uuid.UUID] = Counter()

    def is_connected(self, user_id: uuid.UUID) -> bool:
        return self._sockets[user_id] > 0

    async def connected(self, user_id: uuid.UUID, uow_factory: UoWFactory) -> None:
        self._sockets[user_id] += 1
        if self._sockets[user_id] == 1:
            await set_presence(user_id, True, uow_factory)

    async def disconnected(self, user_id: uuid.UUID, uow_factory: UoWFactory) -> None:
        if self._sockets[user_id] <= 0:
            return
        self._sockets[user_id] -= 1
        if self._sockets[user_id] == 0:
            del self._sockets[user_id]
            await set_presence(user_id, False, uow_factory)


presence = PresenceTracker()
