from __future__ import annotations

import uuid

import pytest
from sqlalchemy.exc import OperationalError

from dm_service.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from dm_service.domain.events.message_created import EVENT_TYPE
from dm_service.services import message_service
from tests.conftest import ALICE, BOB, CAROL, make_conversation


@pytest.fixture
def conv(uow):
    c = make_conversation(ALICE, BOB)
    uow.store.conversations[c.id] = c
    return c


@pytest.mark.asyncio
async def test_send_then_fetch_round_trip(uow, strategy, conv):
    sent = await message_service.send_message(conv.id, ALICE, "hello bob", uow)

    fetched = await message_service.fetch_messages(conv.id, BOB, 40, 0, uow, strategy)

    assert sent.content == "hello bob"
    assert [m.id for m in fetched] == [sent.id]
    assert fetched[0].sender_id == ALICE
    assert uow.commits == 1


@pytest.mark.asyncio
async def test_send_updates_conversation_and_writes_outbox(uow, conv):
    sent = await message_service.send_message(conv.id, BOB, "ping", uow)

    stored = uow.store.conversations[conv.id]
    assert stored.last_message == "ping"
    assert stored.last_message_at == sent.created_at

    [record] = uow.store.outbox
    assert record["event_type"] == EVENT_TYPE
    assert record["aggregate_id"] == conv.id
    assert record["payload"]["message_id"] == str(sent.id)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "\n\t"])
async def test_send_blank_content_rejected(uow, conv, content):
    with pytest.raises(ValidationError):
        await message_service.send_message(conv.id, ALICE, content, uow)
    assert uow.store.messages == []
    assert uow.store.outbox == []


@pytest.mark.asyncio
async def test_send_by_non_participant_forbidden(uow, conv):
    with pytest.raises(ForbiddenError):
        await message_service.send_message(conv.id, CAROL, "hi", uow)
    assert uow.store.messages == []


@pytest.mark.asyncio
async def test_send_to_unknown_conversation(uow):
    with pytest.raises(NotFoundError):
        await message_service.send_message(uuid.uuid4(), ALICE, "hi", uow)


@pytest.mark.asyncio
async def test_fetch_is_chronological_with_newest_page_first(uow, strategy, conv):
    sent = [
        await message_service.send_message(conv.id, ALICE if i % 2 else BOB, f"m{i}", uow)
        for i in range(5)
    ]

    latest = await message_service.fetch_messages(conv.id, ALICE, 3, 0, uow, strategy)
    earlier = await message_service.fetch_messages(conv.id, ALICE, 3, 3, uow, strategy)

    assert [m.content for m in latest] == ["m2", "m3", "m4"]
    assert [m.content for m in earlier] == ["m0", "m1"]
    assert [m.sort_key for m in latest] == sorted(m.sort_key for m in latest)
    assert {m.id for m in latest + earlier} == {m.id for m in sent}


@pytest.mark.asyncio
async def test_fetch_offset_past_end_is_empty(uow, strategy, conv):
    await message_service.send_message(conv.id, ALICE, "only", uow)

    assert await message_service.fetch_messages(conv.id, ALICE, 10, 5, uow, strategy) == []


@pytest.mark.asyncio
async def test_fetch_by_non_participant_forbidden(uow, strategy, conv):
    with pytest.raises(ForbiddenError):
        await message_service.fetch_messages(conv.id, CAROL, 40, 0, uow, strategy)


@pytest.mark.asyncio
async def test_fetch_store_error_yields_empty(uow, strategy, conv):
    async def broken(*args, **kwargs):
        raise ConnectionError("db gone")

    uow.messages.list_messages = broken

    assert await message_service.fetch_messages(conv.id, ALICE, 40, 0, uow, strategy) == []


@pytest.mark.asyncio
async def test_send_keeps_content_verbatim(uow, strategy, conv):
    snippet = "    def f():\n        return 1\n"

    sent = await message_service.send_message(conv.id, ALICE, snippet, uow)
    [fetched] = await message_service.fetch_messages(conv.id, BOB, 40, 0, uow, strategy)

    assert sent.content == snippet
    assert fetched.content == snippet
    assert uow.store.conversations[conv.id].last_message == snippet


@pytest.mark.asyncio
async def test_fetch_programming_error_propagates(uow, strategy, conv):
    async def broken(*args, **kwargs):
        raise RuntimeError("bug")

    uow.messages.list_messages = broken

    with pytest.raises(RuntimeError):
        await message_service.fetch_messages(conv.id, ALICE, 40, 0, uow, strategy)


@pytest.mark.asyncio
async def test_fetch_sqlalchemy_error_yields_empty(uow, strategy, conv):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection reset"))

    uow.messages.list_messages = broken

    assert await message_service.fetch_messages(conv.id, ALICE, 40, 0, uow, strategy) == []
