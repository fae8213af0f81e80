"""In-process fan-out of change-feed events to realtime subscribers.

Every subscription owns a bounded queue drained by its own task, so a slow
callback never blocks ``dispatch`` and never delays other subscribers. When a
queue is full the configured ``OverflowPolicy`` decides what is lost.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable
from uuid import UUID

from dm_service.domain.entities.message import Message
from dm_service.domain.events import message_created, typing_changed
from dm_service.domain.events.message_created import MessageCreated
from dm_service.domain.events.typing_changed import TypingChanged
from dm_service.domain.value_objects.enums import OverflowPolicy

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]
OnInsert = Callable[[Message], Awaitable[None] | None]
OnAnyNewMessage = Callable[[], Awaitable[None] | None]
OnTyping = Callable[[UUID, bool], Awaitable[None] | None]


class Subscription:
    """One consumer: a bounded queue plus the task that drains it."""

    def __init__(
        self,
        name: str,
        handler: Callable[..., Awaitable[None] | None],
        *,
        queue_size: int,
        overflow: OverflowPolicy,
    ) -> None:
        self.name = name
        self.dropped = 0
        self.closed = False
        self._handler = handler
        self._overflow = overflow
        self._queue: asyncio.Queue[tuple[Any, ...]] = asyncio.Queue(maxsize=queue_size)
        self._task = asyncio.create_task(self._consume(), name=f"realtime-{name}")

    def offer(self, args: tuple[Any, ...]) -> bool:
        """Enqueue without waiting. Returns False when something was dropped."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(args)
            return True
        except asyncio.QueueFull:
            pass

        self.dropped += 1
        if self._overflow == OverflowPolicy.DROP_OLDEST:
            self._queue.get_nowait()
            self._queue.put_nowait(args)
        logger.warning(
            "Subscriber %s is behind, %s (dropped=%d)", self.name, self._overflow, self.dropped,
        )
        return False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._task.cancel()

    async def _consume(self) -> None:
        while True:
            args = await self._queue.get()
            try:
                result = self._handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Realtime subscriber %s failed", self.name)


class ChangeNotifier:
    """Turns change-feed events into subscriber callbacks.

    ``subscribe_*`` must be called from a running event loop. Each returns an
    unsubscribe function that releases the subscription; extra calls are no-ops.
    """

    def __init__(
        self,
        *,
        queue_size: int = 100,
        overflow: OverflowPolicy = OverflowPolicy.DROP_OLDEST,
        typing_ttl: float = 3.0,
    ) -> None:
        self._queue_size = queue_size
        self._overflow = overflow
        self._typing_ttl = typing_ttl
        self._conversations: dict[UUID, set[Subscription]] = {}
        self._inbox: set[Subscription] = set()
        self._typing: dict[UUID, set[Subscription]] = {}
        self._typing_timers: dict[tuple[UUID, UUID], asyncio.TimerHandle] = {}

    # -- subscribe -----------------------------------------------------------

    def subscribe_to_conversation(self, conversation_id: UUID, on_insert: OnInsert) -> Unsubscribe:
        sub = self._new_subscription(f"conv-{conversation_id}", on_insert)
        self._conversations.setdefault(conversation_id, set()).add(sub)
        return self._unsubscriber(sub, self._conversations, conversation_id)

    def subscribe_to_inbox(self, user_id: UUID, on_any_new_message: OnAnyNewMessage) -> Unsubscribe:
        """Fires on every message insert, not only the user's own conversations."""
        sub = self._new_subscription(f"inbox-{user_id}", on_any_new_message)
        self._inbox.add(sub)

        def unsubscribe() -> None:
            self._inbox.discard(sub)
            sub.close()

        return unsubscribe

    def subscribe_to_typing(self, conversation_id: UUID, on_typing: OnTyping) -> Unsubscribe:
        sub = self._new_subscription(f"typing-{conversation_id}", on_typing)
        self._typing.setdefault(conversation_id, set()).add(sub)
        return self._unsubscriber(sub, self._typing, conversation_id)

    def subscriber_count(self, conversation_id: UUID | None = None) -> int:
        if conversation_id is None:
            return len(self._inbox) + sum(len(s) for s in self._conversations.values())
        return len(self._conversations.get(conversation_id, ()))

    # -- dispatch ------------------------------------------------------------

    async def dispatch(self, event_type: str, data: dict[str, Any]) -> None:
        """Entry point for the change feed (see ``RedisPubSubSubscriber``)."""
        if event_type == message_created.EVENT_TYPE:
            self.publish_message(MessageCreated.from_payload(data).to_message())
        elif event_type == typing_changed.EVENT_TYPE:
            self.publish_typing(TypingChanged.from_payload(data))
        else:
            logger.debug("Ignoring change-feed event %s", event_type)

    def publish_message(self, message: Message) -> None:
        for sub in list(self._conversations.get(message.conversation_id, ())):
            sub.offer((message,))
        for sub in list(self._inbox):
            sub.offer(())

    def publish_typing(self, event: TypingChanged) -> None:
        key = (event.conversation_id, event.user_id)
        timer = self._typing_timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        self._fan_out_typing(event.conversation_id, event.user_id, event.is_typing)
        if event.is_typing:
            loop = asyncio.get_running_loop()
            self._typing_timers[key] = loop.call_later(self._typing_ttl, self._expire_typing, key)

    async def close(self) -> None:
        for timer in self._typing_timers.values():
            timer.cancel()
        self._typing_timers.clear()
        subs = [*self._inbox]
        for group in (*self._conversations.values(), *self._typing.values()):
            subs.extend(group)
        for sub in subs:
            sub.close()
        self._inbox.clear()
        self._conversations.clear()
        self._typing.clear()

    # -- internals -----------------------------------------------------------

    def _new_subscription(self, name: str, handler: Callable[..., Any]) -> Subscription:
        return Subscription(
            name, handler, queue_size=self._queue_size, overflow=self._overflow,
        )

    @staticmethod
    def _unsubscriber(
        sub: Subscription,
        registry: dict[UUID, set[Subscription]],
        key: UUID,
    ) -> Unsubscribe:
        def unsubscribe() -> None:
            group = registry.get(key)
            if group is not None:
                group.discard(sub)
                if not group:
                    del registry[key]
            sub.close()

        return unsubscribe

    def _expire_typing(self, key: tuple[UUID, UUID]) -> None:
        self._typing_timers.pop(key, None)
        self._fan_out_typing(key[0], key[1], False)

    def _fan_out_typing(self, conversation_id: UUID, user_id: UUID, is_typing: bool) -> None:
        for sub in list(self._typing.get(conversation_id, ())):
            sub.offer((user_id, is_typing))
