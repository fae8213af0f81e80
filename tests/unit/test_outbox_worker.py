from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from dm_service.domain.value_objects.enums import OutboxStatus
from dm_service.services import message_service
from dm_service.workers.outbox_worker import MAX_DELAY_SECONDS, calc_backoff, process_batch
from tests.conftest import ALICE, BOB, FakePublisher, make_conversation


@pytest_asyncio.fixture
async def pending(uow):
    conv = make_conversation(ALICE, BOB)
    uow.store.conversations[conv.id] = conv
    return await message_service.send_message(conv.id, ALICE, "hi", uow)


def test_backoff_grows_and_caps():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    assert calc_backoff(0, now) - now == timedelta(seconds=5)
    assert calc_backoff(2, now) - now == timedelta(seconds=20)
    assert calc_backoff(30, now) - now == timedelta(seconds=MAX_DELAY_SECONDS)


@pytest.mark.asyncio
async def test_process_batch_publishes_and_marks_sent(uow, pending):
    publisher = FakePublisher()

    assert await process_batch(uow, publisher) == 1

    [(_, payload)] = publisher.published
    assert payload["event_type"] == "dm.message_created"
    assert payload["message_id"] == str(pending.id)
    assert uow.store.outbox[0]["status"] == OutboxStatus.SENT
    assert await process_batch(uow, publisher) == 0


@pytest.mark.asyncio
async def test_process_batch_failure_schedules_retry(uow, pending):
    publisher = FakePublisher(fail=True)

    assert await process_batch(uow, publisher) == 0

    record = uow.store.outbox[0]
    assert record["status"] == OutboxStatus.FAILED
    assert record["attempts"] == 1
    assert record["next_retry_at"] > datetime.now(timezone.utc)
