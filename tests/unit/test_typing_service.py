from __future__ import annotations

import pytest

from dm_service.application.exceptions import ForbiddenError
from dm_service.domain.events.typing_changed import EVENT_TYPE
from dm_service.services import typing_service
from tests.conftest import ALICE, BOB, CAROL, FakePublisher, make_conversation


@pytest.mark.asyncio
async def test_send_typing_publishes_ephemeral_event(uow):
    conv = make_conversation(ALICE, BOB)
    uow.store.conversations[conv.id] = conv
    publisher = FakePublisher()

    await typing_service.send_typing(conv.id, ALICE, True, uow, publisher, "dm.test")

    [(channel, payload)] = publisher.published
    assert channel == "dm.test"
    assert payload == {
        "event_type": EVENT_TYPE,
        "conversation_id": str(conv.id),
        "user_id": str(ALICE),
        "is_typing": True,
    }
    assert uow.store.outbox == []
    assert uow.commits == 0


@pytest.mark.asyncio
async def test_send_typing_requires_participant(uow):
    conv = make_conversation(ALICE, BOB)
    uow.store.conversations[conv.id] = conv
    publisher = FakePublisher()

    with pytest.raises(ForbiddenError):
        await typing_service.send_typing(conv.id, CAROL, True, uow, publisher, "dm.test")
    assert publisher.published == []
