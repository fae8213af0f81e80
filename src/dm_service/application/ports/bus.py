from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

# (event_type, data) as decoded from the change feed
ChangeFeedHandler = Callable[[str, dict[str, Any]], Awaitable[None]]


class EventPublisher(Protocol):
    """Publishes onto the change feed.

    ``payload["event_type"]`` names the event; the rest is its data.
    """

    async def publish(self, channel: str, payload: dict[str, Any]) -> None: ...
