from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID


@dataclass(frozen=True, slots=True)
class OutboxRecord:
    """Read-model handed to the outbox worker."""

    id: int
    event_type: str
    payload: dict[str, Any]
    attempts: int


class OutboxWriter(Protocol):
    async def add(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        aggregate_id: UUID | None = None,
    ) -> None: ...

    async def fetch_due(self, batch_size: int, now: datetime) -> list[OutboxRecord]:
        """Lock and claim pending/failed records whose retry time has come."""
        ...

    async def mark_sent(self, ids: list[int]) -> None: ...

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None: ...
