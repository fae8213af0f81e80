from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from dm_service.services.presence_service import PresenceTracker, set_presence
from tests.conftest import ALICE, BOB, FakeUoW


@pytest.mark.asyncio
async def test_set_presence_stamps_last_seen_from_store(uow):
    await set_presence(ALICE, True, lambda: uow)

    status = uow.store.statuses[ALICE]
    assert status.is_online is True
    assert status.last_seen == uow.store.clock.now()
    assert uow.commits == 1


@pytest.mark.asyncio
async def test_set_presence_store_error_is_logged_not_raised(uow, caplog):
    async def broken(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("db gone"))

    uow.statuses_w.set_online = broken

    await set_presence(ALICE, True, lambda: uow)

    assert ALICE not in uow.store.statuses
    assert "Presence update failed" in caplog.text


@pytest.mark.asyncio
async def test_tracker_online_until_last_socket_closes(uow):
    tracker = PresenceTracker()
    factory = lambda: uow  # noqa: E731

    await tracker.connected(ALICE, factory)
    await tracker.connected(ALICE, factory)
    await tracker.disconnected(ALICE, factory)

    assert tracker.is_connected(ALICE)
    assert uow.store.statuses[ALICE].is_online is True
    assert uow.commits == 1

    uow.store.clock.tick()
    await tracker.disconnected(ALICE, factory)

    assert not tracker.is_connected(ALICE)
    assert uow.store.statuses[ALICE].is_online is False
    assert uow.store.statuses[ALICE].last_seen == uow.store.clock.now()


@pytest.mark.asyncio
async def test_tracker_ignores_unmatched_disconnect(store):
    uow = FakeUoW(store)
    tracker = PresenceTracker()

    await tracker.disconnected(BOB, lambda: uow)

    assert BOB not in store.statuses
    assert uow.commits == 0
