"""Seed development data: two profiles, one conversation, a short exchange."""
from __future__ import annotations

import asyncio
import logging
import uuid

from sqlalchemy.dialects.postgresql import insert as pg_insert

from dm_service.infrastructure.db.models.profile import ProfileModel
from dm_service.infrastructure.db.session import AsyncSessionLocal
from dm_service.infrastructure.db.uow import SqlAlchemyUoW
from dm_service.services import conversation_service, message_service
from dm_service.services.strategies import QueryStrategy

logger = logging.getLogger(__name__)

ALICE = uuid.UUID("00000000-0000-4000-8000-00000000a11c")
BOB = uuid.UUID("00000000-0000-4000-8000-000000000b0b")


async def seed() -> None:
    strategy = QueryStrategy()
    async with AsyncSessionLocal() as session:
        await session.execute(
            pg_insert(ProfileModel)
            .values(
                [
                    {"user_id": ALICE, "name": "Alice (guitar lessons)", "profile_picture": None},
                    {"user_id": BOB, "name": "Bob (Spanish tutoring)", "profile_picture": None},
                ]
            )
            .on_conflict_do_nothing()
        )
        uow = SqlAlchemyUoW(session)
        conversation_id = await conversation_service.get_or_create_conversation(
            ALICE, BOB, uow, strategy,
        )

        exchange = [
            (ALICE, "Hi! Saw your post about swapping Spanish for guitar."),
            (BOB, "Yes! I'm a beginner on guitar, fluent in Spanish."),
            (ALICE, "Perfect. Saturday mornings work for me."),
        ]
        for sender_id, content in exchange:
            await message_service.send_message(conversation_id, sender_id, content, uow)

        logger.info("Seeded conversation %s with %d messages", conversation_id, len(exchange))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
