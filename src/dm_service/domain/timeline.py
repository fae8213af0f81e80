"""Helpers for building a display timeline out of fetched pages and realtime events."""
from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from dm_service.domain.entities.message import Message


def merge_messages(
    existing: Iterable[Message],
    incoming: Iterable[Message],
) -> list[Message]:
    """Union two message sets by id, ordered by (created_at, id).

    Realtime delivery is at-least-once and carries no ordering relative to a
    concurrent page fetch, so a plain append is not enough.
    """
    by_id: dict[UUID, Message] = {m.id: m for m in existing}
    for message in incoming:
        by_id.setdefault(message.id, message)
    return sorted(by_id.values(), key=lambda m: m.sort_key)
