"""Startup probe for the optional stored procedures."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dm_service.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)


async def probe_procedures(
    session_factory: async_sessionmaker[AsyncSession],
) -> frozenset[str]:
    """Return the names of installed messaging procedures.

    An unreachable database yields an empty set so the service can still start
    on the query strategy.
    """
    try:
        async with session_factory() as session:
            available = await SqlAlchemyUoW(session).procedures.available()
    except (SQLAlchemyError, OSError):
        logger.exception("Procedure probe failed, assuming none are installed")
        return frozenset()
    logger.info("Installed messaging procedures: %s", ", ".join(sorted(available)) or "none")
    return available
